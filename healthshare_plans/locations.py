"""ZIP lookups for states that penalize going without minimum essential coverage."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

PENALTY_STATE_ZIP_RANGES: Dict[str, List[Tuple[str, str]]] = {
    "MA": [("01001", "01999"), ("02001", "02799"), ("05001", "05999")],
    "CA": [("90001", "96199")],
    "NJ": [("07001", "08999")],
    "RI": [("02800", "02999")],
    "DC": [("20001", "20599")],
}

PENALTY_STATES = tuple(PENALTY_STATE_ZIP_RANGES)

_STATE_NAMES = {
    "MA": "Massachusetts",
    "CA": "California",
    "NJ": "New Jersey",
    "RI": "Rhode Island",
    "DC": "Washington, D.C.",
}


def zip_to_state(zip_code: str) -> Optional[str]:
    """Return the penalty state for ``zip_code``, or None for any other state."""
    digits = re.sub(r"\D", "", zip_code or "")[:5]
    if len(digits) < 3:
        return None
    padded = digits.zfill(5)
    for state, ranges in PENALTY_STATE_ZIP_RANGES.items():
        for low, high in ranges:
            if low <= padded <= high:
                return state
    return None


def is_penalty_state(state: Optional[str]) -> bool:
    return state is not None and state in PENALTY_STATES


def state_name(abbreviation: str) -> str:
    return _STATE_NAMES.get(abbreviation, abbreviation)


def penalty_notice(zip_code: str) -> Optional[str]:
    state = zip_to_state(zip_code)
    if not is_penalty_state(state):
        return None
    return (
        f"{state_name(state)} charges a state tax penalty for going without qualifying "
        "health insurance. Health-sharing memberships are not insurance and may not "
        "count as coverage."
    )
