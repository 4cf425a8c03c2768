import pytest

from mzansimed.field_clear import FieldClearHandler
from mzansimed.models import InstructionSections, InstructionStructure, UserContent

handler = FieldClearHandler()


def full_structure():
    return InstructionStructure(
        sections=InstructionSections(
            medication_name="Paracetamol",
            dosage_line="ℹ️ Take 1 tablet three times daily.",
            dosage_trailing_text="After meals",
            time_of_day="🕜 morning 🌅",
            precautions_header="Precautions",
            precautions_list=["• Take with food"],
        ),
        user_content=UserContent(
            before_medication="\n",
            after_medication="Generic\n",
            after_dosage="Shake well\n",
            after_time_of_day="Keep cool\n",
            after_precautions="Call us\n",
        ),
    )


def test_clear_time_of_day_only():
    """Clearing the time of day blanks that line and nothing else."""
    original = full_structure()
    cleared = handler.clear(original, "time_of_day")

    expected = full_structure()
    expected.sections.time_of_day = ""
    assert cleared == expected
    assert cleared.user_content == original.user_content
    # Input is left untouched
    assert original.sections.time_of_day == "🕜 morning 🌅"


def test_dosage_fields_share_the_sentence():
    """Dosage, frequency and interval all blank the one dosage sentence."""
    for field in ["dosage", "frequency", "interval"]:
        cleared = handler.clear(full_structure(), field)
        assert cleared.sections.dosage_line == ""
        assert cleared.sections.dosage_trailing_text == "After meals"
        assert cleared.sections.medication_name == "Paracetamol"


def test_clear_precautions():
    cleared = handler.clear(full_structure(), "precautions")
    assert cleared.sections.precautions_header == ""
    assert cleared.sections.precautions_list == []
    assert cleared.user_content.after_precautions == "Call us\n"


def test_clear_without_content_is_noop():
    """Clearing a field with nothing generated returns the structure as is."""
    structure = InstructionStructure(sections=InstructionSections(medication_name="Paracetamol"))
    assert handler.clear(structure, "time_of_day") is structure
    assert handler.affects(structure, "name")
    assert not handler.affects(structure, "precautions")


def test_unknown_field():
    with pytest.raises(ValueError):
        handler.clear(full_structure(), "strength")
