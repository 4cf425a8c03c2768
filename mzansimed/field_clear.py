from typing import Dict, Tuple

from .models import FIELD_NAMES, InstructionStructure

# Generated section(s) each structured field produces. Dosage, frequency and
# interval share the one dosage sentence.
FIELD_SECTIONS: Dict[str, Tuple[str, ...]] = {
    "name": ("medication_name",),
    "dosage": ("dosage_line",),
    "frequency": ("dosage_line",),
    "interval": ("dosage_line",),
    "time_of_day": ("time_of_day",),
    "precautions": ("precautions_header", "precautions_list"),
}


class FieldClearHandler:
    """Blanks the generated section(s) tied to a cleared field, nothing else."""

    def sections_for(self, field: str):
        if field not in FIELD_SECTIONS:
            raise ValueError(f"Unknown medication field '{field}'. Valid fields are: {', '.join(FIELD_NAMES)}")
        return FIELD_SECTIONS[field]

    def affects(self, structure: InstructionStructure, field: str) -> bool:
        return any(getattr(structure.sections, name) for name in self.sections_for(field))

    def clear(self, structure: InstructionStructure, field: str) -> InstructionStructure:
        """Return a copy with the field's sections blanked.

        When none of those sections hold content the same object is returned.
        """
        if not self.affects(structure, field):
            return structure
        cleared = structure.model_copy(deep=True)
        for name in self.sections_for(field):
            setattr(cleared.sections, name, [] if name == "precautions_list" else "")
        return cleared
