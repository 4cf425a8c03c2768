from typing import Optional

from .constants import BULLET, DOSAGE_MARKER, PRECAUTIONS_HEADER, TAKE_VERB, TIME_MARKER, TIME_OF_DAY_EMOJIS
from .models import (
    InstructionSections,
    InstructionStatus,
    InstructionStructure,
    MedicationFields,
    UserContent,
)


def instruction_status(fields: MedicationFields) -> InstructionStatus:
    """Which state the required fields (name, dosage, frequency) put a tab in."""
    if fields.is_empty():
        return InstructionStatus.EMPTY
    if not fields.is_complete():
        return InstructionStatus.PARTIAL
    return InstructionStatus.GENERATED


def format_time_of_day(time_of_day: str) -> str:
    lowered = time_of_day.lower()
    found = [f"{period} {emoji}" for period, emoji in TIME_OF_DAY_EMOJIS.items() if period in lowered]
    if not found:
        return lowered
    return ", ".join(found)


class InstructionComposer:
    """Builds the English generated sections from structured fields."""

    def dosage_line(self, fields: MedicationFields) -> str:
        interval = f" {fields.interval.lower()}" if fields.interval else ""
        return f"{DOSAGE_MARKER} {TAKE_VERB} {fields.dosage} {fields.frequency.lower()}{interval}."

    def time_of_day_line(self, fields: MedicationFields) -> str:
        if not fields.time_of_day:
            return ""
        return f"{TIME_MARKER} {format_time_of_day(fields.time_of_day)}"

    def compose(
        self,
        fields: MedicationFields,
        preserved_user_content: Optional[UserContent] = None,
        preserved_trailing_text: str = "",
    ) -> InstructionStructure:
        """Generated sections for `fields`; user content is passed through untouched."""
        sections = InstructionSections(
            medication_name=fields.display_name(),
            dosage_line=self.dosage_line(fields),
            dosage_trailing_text=preserved_trailing_text,
            time_of_day=self.time_of_day_line(fields),
            precautions_header=PRECAUTIONS_HEADER if fields.precautions else "",
            precautions_list=[f"{BULLET} {precaution}" for precaution in fields.precautions],
        )
        user_content = preserved_user_content.model_copy() if preserved_user_content else UserContent()
        return InstructionStructure(sections=sections, user_content=user_content)
