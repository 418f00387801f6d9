from __future__ import annotations

import abc
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
import yaml

from .errors import CatalogUnavailableError, ValidationError
from .models import PricingPlan
from .validator import validate_plan

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "plan_catalog.json"


class BaseCatalogSource(abc.ABC):
    """Fetches the current plan catalog as raw rows."""

    @abc.abstractmethod
    async def fetch_plans(self) -> List[Dict[str, Any]]:
        raise NotImplementedError


class StaticCatalogSource(BaseCatalogSource):
    """In-memory catalog, mostly for tests and fixtures."""

    def __init__(self, rows: Iterable[Dict[str, Any]]):
        self._rows = [dict(row) for row in rows]

    async def fetch_plans(self) -> List[Dict[str, Any]]:
        return [dict(row) for row in self._rows]


class FileCatalogSource(BaseCatalogSource):
    """Reads a catalog from a JSON or YAML file holding a list of plans."""

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = Path(path) if path else DEFAULT_CATALOG_PATH

    async def fetch_plans(self) -> List[Dict[str, Any]]:
        return read_catalog_file(self.path)


class SupabaseCatalogSource(BaseCatalogSource):
    """
    Reads plans from a Supabase table through its PostgREST endpoint.

    ``plan_matrix`` and ``coverage`` are expected to be JSON columns shaped
    like the bundled catalog file.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        table: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        resolved = url or os.getenv("SUPABASE_URL")
        if not resolved:
            raise ValueError("Supabase URL required for SupabaseCatalogSource.")
        self.base_url = resolved.rstrip("/")
        self.api_key = api_key or os.getenv("SUPABASE_ANON_KEY")
        if not self.api_key:
            raise ValueError("Supabase API key required for SupabaseCatalogSource.")
        self.table = table or os.getenv("SUPABASE_PLANS_TABLE") or "plans"
        self.timeout = timeout
        self._transport = transport

    async def fetch_plans(self) -> List[Dict[str, Any]]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        target_url = f"{self.base_url}/rest/v1/{self.table}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(target_url, headers=headers, params={"select": "*"})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CatalogUnavailableError(
                f"Supabase returned {exc.response.status_code} for table '{self.table}'."
            ) from exc
        except httpx.HTTPError as exc:
            raise CatalogUnavailableError(f"Failed to reach Supabase: {exc}") from exc
        data = response.json()
        if not isinstance(data, list):
            raise CatalogUnavailableError(f"Unexpected catalog payload from Supabase: {data!r}")
        return data


def read_catalog_file(path: Path) -> List[Dict[str, Any]]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            if path.suffix.lower() in {".yaml", ".yml"}:
                data = yaml.safe_load(fh)
            else:
                data = json.load(fh)
    except OSError as exc:
        raise CatalogUnavailableError(f"Cannot read catalog file {path}: {exc}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CatalogUnavailableError(f"Catalog file {path} is not valid: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("plans", [])
    if not isinstance(data, list):
        raise CatalogUnavailableError(f"Catalog file {path} must hold a list of plans.")
    return data


def ingest_plans(rows: Iterable[Any], *, strict: bool = False) -> Tuple[PricingPlan, ...]:
    """
    Validate raw rows and return them as an immutable catalog snapshot.

    Invalid rows are dropped with a warning; in strict mode the first one raises.
    Duplicate ids keep the first occurrence.
    """
    plans: List[PricingPlan] = []
    seen_ids = set()
    for row in rows:
        try:
            plan = validate_plan(row)
        except ValidationError as exc:
            if strict:
                raise
            logger.warning("Skipping catalog entry: %s", exc)
            continue
        if plan.id in seen_ids:
            if strict:
                raise ValidationError([f"Duplicate plan id '{plan.id}'."], subject="catalog")
            logger.warning("Skipping duplicate catalog entry '%s'", plan.id)
            continue
        seen_ids.add(plan.id)
        plans.append(plan)
    logger.info("Ingested %d catalog plans", len(plans))
    return tuple(plans)


class PlanCatalog:
    """Holds the current catalog snapshot loaded from a source."""

    def __init__(self, source: Optional[BaseCatalogSource] = None, *, strict: bool = False):
        self.source = source or FileCatalogSource()
        self.strict = strict
        self._plans: Optional[Tuple[PricingPlan, ...]] = None

    async def plans(self) -> Tuple[PricingPlan, ...]:
        if self._plans is None:
            await self.refresh()
        return self._plans

    async def refresh(self) -> Tuple[PricingPlan, ...]:
        rows = await self.source.fetch_plans()
        # Swap in a new tuple; callers holding the old snapshot keep it intact.
        self._plans = ingest_plans(rows, strict=self.strict)
        return self._plans

    async def get(self, plan_id: str) -> Optional[PricingPlan]:
        for plan in await self.plans():
            if plan.id == plan_id:
                return plan
        return None


@lru_cache(maxsize=1)
def default_plans() -> Tuple[PricingPlan, ...]:
    return ingest_plans(read_catalog_file(DEFAULT_CATALOG_PATH), strict=True)
