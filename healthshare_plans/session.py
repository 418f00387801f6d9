from __future__ import annotations

import abc
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .errors import QuestionnaireNotFoundError
from .models import QuestionnaireResponse

logger = logging.getLogger(__name__)


class BaseQuestionnaireStore(abc.ABC):
    """Keeps the current questionnaire response per session."""

    @abc.abstractmethod
    def load(self, session_id: str) -> QuestionnaireResponse:
        raise NotImplementedError

    @abc.abstractmethod
    def save(self, session_id: str, response: QuestionnaireResponse) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def clear(self, session_id: str) -> None:
        raise NotImplementedError


@dataclass
class _Entry:
    response: QuestionnaireResponse
    expires_at: float


class InMemoryQuestionnaireStore(BaseQuestionnaireStore):
    """
    Process-local store with a short-lived primary entry and a longer-lived backup.

    When the primary entry has expired but the backup has not, ``load`` restores
    the primary from the backup.
    """

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        backup_ttl_seconds: float = 24 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.backup_ttl_seconds = backup_ttl_seconds
        self._clock = clock
        self._primary: Dict[str, _Entry] = {}
        self._backup: Dict[str, _Entry] = {}

    def load(self, session_id: str) -> QuestionnaireResponse:
        now = self._clock()
        entry = self._fresh(self._primary, session_id, now)
        if entry is not None:
            return entry.response
        backup = self._fresh(self._backup, session_id, now)
        if backup is None:
            raise QuestionnaireNotFoundError("Please complete the questionnaire first.")
        logger.info("Restoring questionnaire for session %s from backup", session_id)
        self._primary[session_id] = _Entry(backup.response, now + self.ttl_seconds)
        return backup.response

    def save(self, session_id: str, response: QuestionnaireResponse) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._primary[session_id] = _Entry(response, now + self.ttl_seconds)
        self._backup[session_id] = _Entry(response, now + self.backup_ttl_seconds)

    def clear(self, session_id: str) -> None:
        self._primary.pop(session_id, None)
        self._backup.pop(session_id, None)

    def _purge_expired(self, now: float) -> None:
        for entries in (self._primary, self._backup):
            expired = [key for key, entry in entries.items() if entry.expires_at <= now]
            for key in expired:
                del entries[key]

    @staticmethod
    def _fresh(entries: Dict[str, _Entry], session_id: str, now: float) -> Optional[_Entry]:
        entry = entries.get(session_id)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del entries[session_id]
            return None
        return entry
