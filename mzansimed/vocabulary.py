import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from dotenv import load_dotenv

from .cache import TTLCache
from .constants import LANGUAGE_COLUMNS, STATIC_TRANSLATIONS, VOCABULARY_CATEGORIES

load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_VOCABULARY_DIR = PROJECT_DIR / "data" / "translations_db"


class LookupUnavailable(RuntimeError):
    """Vocabulary data is not loaded yet or could not be read."""


def normalize_category(category: str) -> str:
    """Map any casing of a category name onto its table name."""
    for known in VOCABULARY_CATEGORIES:
        if known.lower() == category.strip().lower():
            return known
    raise ValueError(
        f"Invalid translation type '{category}'. Valid types are: {', '.join(VOCABULARY_CATEGORIES)}"
    )


def language_column(language: str) -> Optional[str]:
    if not language:
        return None
    for column in LANGUAGE_COLUMNS:
        if column.lower() == language.strip().lower():
            return column
    return None


class VocabularyLookup:
    """Looks up target-language equivalents of English vocabulary terms.

    Each category is a CSV table keyed by the English term with one column per
    language. Tables are cached per instance and reloaded after the TTL.
    """

    def __init__(self, data_dir: Optional[str] = None, ttl: Optional[float] = None, cache: Optional[TTLCache] = None):
        if data_dir is None:
            data_dir = os.getenv("VOCABULARY_DIR", str(DEFAULT_VOCABULARY_DIR))
        self.data_dir = Path(data_dir)
        if ttl is None:
            ttl = float(os.getenv("VOCABULARY_CACHE_TTL", "300"))
        self.ttl = ttl
        self.cache = cache or TTLCache()
        self._loading = False
        self._ready = False

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def ready(self) -> bool:
        return self._ready

    def _load_table(self, category: str) -> Dict[str, Any]:
        path = self.data_dir / f"{category}.csv"
        try:
            frame = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Error reading {category} CSV at {path}: {e}")
            raise LookupUnavailable(f"Could not load {category} translation data") from e

        if len(frame.columns) < len(LANGUAGE_COLUMNS):
            raise LookupUnavailable(
                f"{category} translation data needs {len(LANGUAGE_COLUMNS)} columns, found {len(frame.columns)}"
            )

        frame = frame.iloc[:, :len(LANGUAGE_COLUMNS)].copy()
        frame.columns = LANGUAGE_COLUMNS
        for column in LANGUAGE_COLUMNS:
            frame[column] = frame[column].astype(str).str.strip()
        frame = frame[frame["english"] != ""]
        # First row wins for repeated English terms
        frame = frame.drop_duplicates(subset="english", keep="first")

        options = frame.to_dict(orient="records")
        return {
            "options": options,
            "index": {row["english"]: row for row in options},
        }

    def table(self, category: str) -> Dict[str, Any]:
        category = normalize_category(category)
        return self.cache.get_or_refresh(category, self.ttl, lambda: self._load_table(category))

    async def preload(self):
        """Load every category table; marks the lookup ready on success."""
        self._loading = True
        try:
            for category in VOCABULARY_CATEGORIES:
                await asyncio.to_thread(self.table, category)
            self._ready = True
            logger.info(f"Vocabulary preloaded from {self.data_dir}")
        except LookupUnavailable:
            self._ready = False
            raise
        finally:
            self._loading = False

    async def lookup(self, category: str, english_term: str, language: str) -> str:
        category = normalize_category(category)
        table = await asyncio.to_thread(self.table, category)
        column = language_column(language)
        row = table["index"].get(english_term)
        if row is None or column is None:
            return english_term
        return row.get(column) or english_term

    async def lookup_static(self, key: str, language: str) -> str:
        translations = STATIC_TRANSLATIONS.get(key)
        if translations is None:
            return key
        # Unsupported languages keep the English wording
        column = language_column(language) or "english"
        return translations.get(column) or translations["english"]

    def header_spellings(self) -> List[str]:
        return list(STATIC_TRANSLATIONS["precautionsHeader"].values())

    def options(self, category: str) -> Dict[str, Any]:
        table = self.table(category)
        return {
            "type": normalize_category(category),
            "options": table["options"],
            "englishOptions": [row["english"] for row in table["options"]],
        }

    def all_options(self) -> Dict[str, Any]:
        """Options for every category plus the static words.

        A category whose table cannot be read is reported with no options.
        """
        all_options: Dict[str, Any] = {}
        for category in VOCABULARY_CATEGORIES:
            try:
                table = self.table(category)
                all_options[category.lower()] = {
                    "options": table["options"],
                    "englishOptions": [row["english"] for row in table["options"]],
                }
            except LookupUnavailable as e:
                logger.warning(f"Error loading {category}: {e}")
                all_options[category.lower()] = {"options": [], "englishOptions": []}
        all_options["static"] = STATIC_TRANSLATIONS
        return all_options

    async def translate(self, text: str, category: str, language: str) -> str:
        """Translate one term; category `static` selects the static words."""
        if category == "static":
            return await self.lookup_static(text, language)
        return await self.lookup(category, text, language)

    async def translate_batch(self, items: List[Dict[str, Optional[str]]], language: str) -> List[Dict[str, Any]]:
        results = []
        for item in items:
            text = item.get("text")
            category = item.get("type")
            result: Dict[str, Any] = {
                "originalText": text or "",
                "translatedText": text or "",
                "targetLanguage": language,
            }
            if not text or not category:
                result["error"] = "Missing text or type"
                results.append(result)
                continue
            try:
                result["translatedText"] = await self.translate(text, category, language)
            except ValueError:
                result["error"] = "Invalid type"
            except LookupUnavailable as e:
                logger.error(f"Error translating {text}: {e}")
                result["error"] = str(e)
            results.append(result)
        return results

    def clear_cache(self):
        self.cache.clear()
        logger.info("Translation cache cleared")
