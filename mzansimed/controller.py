import logging
from typing import Any, Optional

from .composer import InstructionComposer, instruction_status
from .constants import LOADING_PLACEHOLDER, PLACEHOLDER_TEXTS, TRANSLATED_PLACEHOLDER, TRANSLATION_ERROR
from .field_clear import FieldClearHandler
from .models import (
    FIELD_NAMES,
    InstructionSections,
    InstructionStatus,
    InstructionStructure,
    MedicationFields,
    MedicationTab,
    field_value_is_empty,
)
from .parser import InstructionParser, resplit_dosage
from .renderer import InstructionRenderer
from .translator import InstructionTranslator
from .vocabulary import LookupUnavailable, VocabularyLookup

logger = logging.getLogger(__name__)


class SynchronizationController:
    """Keeps one tab's English and translated instructions in step with its fields.

    States follow the required fields: Empty (none set), Partial (some set,
    display frozen) and Generated (composed and translated). User text typed
    into the English pane survives every regeneration.
    """

    def __init__(
        self,
        tab: MedicationTab,
        vocabulary: VocabularyLookup,
        parser: Optional[InstructionParser] = None,
        composer: Optional[InstructionComposer] = None,
        renderer: Optional[InstructionRenderer] = None,
        translator: Optional[InstructionTranslator] = None,
        clear_handler: Optional[FieldClearHandler] = None,
    ):
        self.tab = tab
        self.vocabulary = vocabulary
        self.parser = parser or InstructionParser(vocabulary.header_spellings())
        self.composer = composer or InstructionComposer()
        self.renderer = renderer or InstructionRenderer()
        self.translator = translator or InstructionTranslator(vocabulary)
        self.clear_handler = clear_handler or FieldClearHandler()
        # Transient view of the English pane; rebuilt from text, never persisted
        self.structure = InstructionStructure()
        self.structure = self._parse_english(tab.display.english)

    def _parse_english(self, text: str) -> InstructionStructure:
        """Parse the English pane, matching the generated dosage sentence whole."""
        parsed = self.parser.parse(text)
        generated = [self.structure.sections.dosage_line]
        if self.tab.fields.is_complete():
            generated.append(self.composer.dosage_line(self.tab.fields))
        parsed.sections = resplit_dosage(parsed.sections, generated)
        return parsed

    @property
    def status(self) -> InstructionStatus:
        return self.tab.status

    def _refresh_name(self):
        self.tab.name = self.tab.fields.display_name() or f"Medication {self.tab.id}"

    def reset(self):
        """Back to the empty state: nothing generated, placeholder translation."""
        self.structure = InstructionStructure()
        self.tab.display.english = ""
        self.tab.display.translated = TRANSLATED_PLACEHOLDER
        self.tab.display.translation_error = None
        self.tab.status = InstructionStatus.EMPTY

    async def update_field(self, field: str, value: Any, language: str) -> MedicationTab:
        """Apply a structured field edit and regenerate what depends on it."""
        if field not in FIELD_NAMES:
            raise ValueError(f"Unknown medication field '{field}'. Valid fields are: {', '.join(FIELD_NAMES)}")

        setattr(self.tab.fields, field, value)
        if field_value_is_empty(value):
            self.clear_field(field)
        await self.regenerate(language)
        self._refresh_name()
        return self.tab

    def clear_field(self, field: str) -> bool:
        """Strip the generated section(s) of a cleared field from the English pane."""
        current = self._parse_english(self.tab.display.english)
        cleared = self.clear_handler.clear(current, field)
        if cleared is current:
            return False

        english = self.renderer.reassemble(cleared)
        cleared.last_generated = self.structure.last_generated
        self.structure = cleared
        self.tab.display.english = english
        if not english:
            self.tab.display.translated = TRANSLATED_PLACEHOLDER
            self.tab.display.translation_error = None
        return True

    async def regenerate(self, language: str):
        status = instruction_status(self.tab.fields)
        if status == InstructionStatus.EMPTY:
            self.reset()
            return
        if status == InstructionStatus.PARTIAL:
            # Leave the display alone while the pharmacist is mid-entry
            self.tab.status = InstructionStatus.PARTIAL
            return

        if self.structure.last_generated.english and self.tab.display.english == self.structure.last_generated.english:
            # Untouched since the last generation: the retained view is exact
            current = self.structure
        else:
            current = self._parse_english(self.tab.display.english)
        structure = self.composer.compose(
            self.tab.fields,
            current.user_content,
            current.sections.dosage_trailing_text,
        )
        english = self.renderer.reassemble(structure)
        structure.last_generated.english = english
        self.structure = structure
        self.tab.display.english = english
        self.tab.status = InstructionStatus.GENERATED

        await self.refresh_translation(language)

    def _is_stale(self, fields: MedicationFields, english: str) -> bool:
        return self.tab.fields != fields or self.tab.display.english != english

    async def refresh_translation(self, language: str):
        """Substitute vocabulary into the English text for the translated pane.

        A result is applied only while the fields and English text it was
        computed from are still current.
        """
        english = self.tab.display.english
        if not english:
            self.tab.display.translated = TRANSLATED_PLACEHOLDER
            self.tab.display.translation_error = None
            return
        if self.vocabulary.loading:
            self.tab.display.translated = LOADING_PLACEHOLDER
            return

        fields = self.tab.fields.model_copy(deep=True)
        try:
            translated = await self.translator.translate(english, fields, language)
        except LookupUnavailable as e:
            if self._is_stale(fields, english):
                logger.debug(f"Dropping failed translation for superseded input on tab {self.tab.id}")
                return
            logger.warning(f"Error generating translation for tab {self.tab.id}: {e}")
            self.tab.display.translated = english
            self.tab.display.translation_error = TRANSLATION_ERROR
            self.tab.display.selected_language = language
            return

        if self._is_stale(fields, english):
            logger.debug(f"Dropping stale translation for tab {self.tab.id}")
            return

        self.tab.display.translated = translated
        self.tab.display.selected_language = language
        self.tab.display.translation_error = None
        self.structure.last_generated.translated = translated

    def edit_english(self, text: str) -> MedicationTab:
        """Take a direct edit of the English pane.

        Generated sections missing from the new text keep their previous value
        in the retained structure; the visible text is not regenerated until
        the next field edit. User content is mirrored into the translated pane.
        """
        parsed = self._parse_english(text)
        previous = self.structure.sections
        sections = InstructionSections(
            medication_name=parsed.sections.medication_name or previous.medication_name,
            dosage_line=parsed.sections.dosage_line or previous.dosage_line,
            dosage_trailing_text=parsed.sections.dosage_trailing_text,
            time_of_day=parsed.sections.time_of_day or previous.time_of_day,
            precautions_header=parsed.sections.precautions_header or previous.precautions_header,
            precautions_list=parsed.sections.precautions_list or list(previous.precautions_list),
        )
        self.structure = InstructionStructure(
            sections=sections,
            user_content=parsed.user_content,
            last_generated=self.structure.last_generated,
        )
        self.tab.display.english = text
        self._mirror_user_content(parsed)
        return self.tab

    def _mirror_user_content(self, english: InstructionStructure):
        """Copy English user content into the translated pane, keeping its generated lines."""
        base = self.tab.display.translated
        if base in PLACEHOLDER_TEXTS:
            base = ""
        translated = self.parser.parse(base)
        translated.user_content = english.user_content.model_copy()
        translated.sections.dosage_trailing_text = english.sections.dosage_trailing_text
        mirrored = self.renderer.reassemble(translated)
        self.tab.display.translated = mirrored or TRANSLATED_PLACEHOLDER

    def edit_translated(self, text: str) -> MedicationTab:
        """Store a manual edit of the translated pane as-is."""
        self.tab.display.translated = text
        self.tab.display.translation_error = None
        return self.tab
