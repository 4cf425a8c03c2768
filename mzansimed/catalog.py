import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .cache import TTLCache
from .vocabulary import DEFAULT_VOCABULARY_DIR, LookupUnavailable

logger = logging.getLogger(__name__)


class MedicationCatalog:
    """Medication names offered as suggestions while typing the name field."""

    CACHE_KEY = "medications"

    def __init__(self, data_dir: Optional[str] = None, ttl: Optional[float] = None, cache: Optional[TTLCache] = None):
        if data_dir is None:
            data_dir = os.getenv("VOCABULARY_DIR", str(DEFAULT_VOCABULARY_DIR))
        self.path = Path(data_dir) / "medications.csv"
        if ttl is None:
            ttl = float(os.getenv("CATALOG_CACHE_TTL", "600"))
        self.ttl = ttl
        self.cache = cache or TTLCache()

    def _load(self) -> List[Dict[str, str]]:
        try:
            frame = pd.read_csv(self.path, dtype=str, keep_default_na=False, skipinitialspace=True)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Error reading medications CSV at {self.path}: {e}")
            raise LookupUnavailable("Could not load medication data") from e

        if "name" not in frame.columns:
            raise LookupUnavailable("Medication data has no 'name' column")
        if "searchTerms" not in frame.columns:
            frame["searchTerms"] = ""

        for column in ("name", "searchTerms"):
            frame[column] = frame[column].astype(str).str.strip()
        frame = frame[frame["name"] != ""]
        return frame.to_dict(orient="records")

    def all(self) -> List[Dict[str, str]]:
        return self.cache.get_or_refresh(self.CACHE_KEY, self.ttl, self._load)

    def suggest(self, prefix: str, limit: int = 50) -> List[str]:
        """Names matching `prefix` in the name or search terms, best first."""
        term = (prefix or "").strip().lower()
        if not term:
            raise ValueError('Query parameter "q" is required')

        leading, other = [], []
        for medication in self.all():
            name = medication["name"]
            lowered = name.lower()
            if lowered.startswith(term):
                leading.append(name)
            elif term in lowered or term in medication["searchTerms"].lower():
                other.append(name)
        return (leading + other)[:limit]
