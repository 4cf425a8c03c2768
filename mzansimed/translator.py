import logging
import re

from .constants import DOSAGE_MARKER, PRECAUTIONS_HEADER, TIME_OF_DAY_WORDS
from .models import MedicationFields
from .vocabulary import VocabularyLookup

logger = logging.getLogger(__name__)

TAKE_CAPITALIZED = re.compile(rf"{re.escape(DOSAGE_MARKER)} Take\b")
TAKE_LOWER = re.compile(rf"{re.escape(DOSAGE_MARKER)} take\b")
PRECAUTIONS_WORD = re.compile(rf"\b{PRECAUTIONS_HEADER}\b")


class InstructionTranslator:
    """Produces the translated pane by literal substitution into English text.

    Substitution is not scoped to generated sections: a field value repeated
    in user-typed text can be replaced there instead of, or as well as, in
    the generated line.
    """

    def __init__(self, vocabulary: VocabularyLookup):
        self.vocabulary = vocabulary

    async def translate(self, text: str, fields: MedicationFields, language: str) -> str:
        translated = text

        take = await self.vocabulary.lookup_static("take", language)
        take_capitalized = take[:1].upper() + take[1:]
        translated = TAKE_CAPITALIZED.sub(lambda _: f"{DOSAGE_MARKER} {take_capitalized}", translated)
        translated = TAKE_LOWER.sub(lambda _: f"{DOSAGE_MARKER} {take}", translated)

        header = await self.vocabulary.lookup_static("precautionsHeader", language)
        translated = PRECAUTIONS_WORD.sub(lambda _: header, translated)

        if fields.dosage:
            dosage = await self.vocabulary.lookup("Dosage", fields.dosage, language)
            translated = translated.replace(fields.dosage, dosage, 1)

        # Frequency and interval appear lowercased in the dosage sentence
        if fields.frequency:
            frequency = await self.vocabulary.lookup("Frequency", fields.frequency, language)
            translated = translated.replace(fields.frequency.lower(), frequency.lower(), 1)

        if fields.interval:
            interval = await self.vocabulary.lookup("Intervals", fields.interval, language)
            translated = translated.replace(fields.interval.lower(), interval.lower(), 1)

        if fields.time_of_day:
            for word in TIME_OF_DAY_WORDS:
                pattern = re.compile(rf"\b{word}\b", re.IGNORECASE)
                if not pattern.search(fields.time_of_day):
                    continue
                period = await self.vocabulary.lookup("Time_of_Day", word.capitalize(), language)
                translated = pattern.sub(lambda _: period.lower(), translated)

        for precaution in fields.precautions:
            localized = await self.vocabulary.lookup("Precautions", precaution, language)
            translated = translated.replace(precaution, localized, 1)

        logger.debug(f"Translated instructions into {language}")
        return translated
