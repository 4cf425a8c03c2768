import re
from typing import Dict, Optional

from .constants import (
    DOSAGE_ABBREVIATIONS,
    FREQUENCY_ABBREVIATIONS,
    INTERVAL_ABBREVIATIONS,
    TIME_OF_DAY_ABBREVIATIONS,
)


def _replace_tokens(text: str, abbreviations: Dict[str, str]) -> str:
    """
    Replaces every abbreviation that stands as its own token:
    1. Longest abbreviations first, so "p.m." wins over "m.".
    2. Case-insensitive.
    3. Never inside a longer word ("tab" in "tablet" stays put).
    """
    res = text
    for abbr in sorted(abbreviations, key=len, reverse=True):
        pattern = r'(?<![A-Za-z.])' + re.escape(abbr) + r'(?![A-Za-z])'
        full = abbreviations[abbr]
        res = re.sub(pattern, lambda _: full, res, flags=re.IGNORECASE)
    return res


def expand_abbreviation(field: str, value: str) -> Optional[str]:
    """Expanded field value, or None when there is nothing to expand."""
    if not value:
        return None

    if field == "frequency":
        expanded = FREQUENCY_ABBREVIATIONS.get(value.strip().lower())
    elif field == "interval":
        expanded = INTERVAL_ABBREVIATIONS.get(value.strip().lower())
    elif field == "dosage":
        expanded = _replace_tokens(value, DOSAGE_ABBREVIATIONS)
    elif field == "time_of_day":
        expanded = _replace_tokens(value, TIME_OF_DAY_ABBREVIATIONS)
    else:
        return None

    if expanded is None or expanded == value:
        return None
    return expanded
