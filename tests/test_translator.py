import asyncio

import pytest

from mzansimed.composer import InstructionComposer
from mzansimed.models import MedicationFields
from mzansimed.renderer import InstructionRenderer
from mzansimed.translator import InstructionTranslator
from mzansimed.vocabulary import LookupUnavailable, VocabularyLookup

PARACETAMOL = MedicationFields(
    name="Paracetamol, oral",
    dosage="500mg tablet",
    frequency="Three times daily",
    interval="Every 8 hours",
    time_of_day="morning, afternoon, evening",
    precautions=["Take with food"],
)


def english_for(fields):
    return InstructionRenderer().reassemble(InstructionComposer().compose(fields))


def test_end_to_end_isizulu(vocabulary):
    """Exactly the vocabulary tokens change; lines keep their order."""
    english = english_for(PARACETAMOL)
    translated = asyncio.run(InstructionTranslator(vocabulary).translate(english, PARACETAMOL, "isiZulu"))
    assert translated == (
        "Paracetamol\n"
        "ℹ️ Thatha 500mg ithebhulethi kathathu ngosuku njalo emva kwamahora ayisishiyagalombili.\n"
        "🕜 morning 🌅, afternoon ☀️, evening 🌆\n"
        "\n"
        "Ukuqaphela\n"
        "• Thatha nokudla"
    )
    assert len(translated.split("\n")) == len(english.split("\n"))


def test_afrikaans_static_words(vocabulary):
    fields = MedicationFields(name="Ibuprofen", dosage="1 tablet", frequency="Twice daily", precautions=["Avoid alcohol"])
    translated = asyncio.run(InstructionTranslator(vocabulary).translate(english_for(fields), fields, "afrikaans"))
    assert translated == "Ibuprofen\nℹ️ Vat 1 tablet twee keer per dag.\n\nVoorsorgmaatreëls\n• Vermy alkohol"


def test_only_first_dosage_occurrence_is_replaced(vocabulary):
    """A dosage value repeated in user text is replaced in its first occurrence only."""
    fields = MedicationFields(name="Ibuprofen", dosage="1 tablet", frequency="Twice daily")
    text = "Ibuprofen\nℹ️ Take 1 tablet twice daily.\nNever more than 1 tablet at once"
    translated = asyncio.run(InstructionTranslator(vocabulary).translate(text, fields, "isiZulu"))
    assert translated == "Ibuprofen\nℹ️ Thatha 1 iphilisi kabili ngosuku.\nNever more than 1 tablet at once"


def test_time_of_day_words(vocabulary):
    """Period words are whole-word matches; 'noon' does not hit 'afternoon'."""
    translator = InstructionTranslator(vocabulary)
    fields = MedicationFields(name="Zopiclone", dosage="1 tablet", frequency="Once daily", time_of_day="Night")
    text = "Zopiclone\nℹ️ Take 1 tablet once daily.\n🕜 night 🌃\nOnly at Night"
    translated = asyncio.run(translator.translate(text, fields, "isiZulu"))
    assert translated.split("\n")[2:] == ["🕜 ebusuku 🌃", "Only at ebusuku"]

    fields = MedicationFields(name="Zopiclone", dosage="1 tablet", frequency="Once daily", time_of_day="noon")
    text = "Zopiclone\nℹ️ Take 1 tablet once daily.\n🕜 noon\nNot in the afternoon"
    translated = asyncio.run(translator.translate(text, fields, "isiZulu"))
    assert translated.split("\n")[2:] == ["🕜 emini", "Not in the afternoon"]


def test_unknown_terms_and_languages_fall_back(vocabulary):
    """Terms missing from the tables, or unsupported languages, stay in English."""
    translator = InstructionTranslator(vocabulary)
    fields = MedicationFields(name="Aspirin", dosage="half a tablet", frequency="Every other day")
    english = english_for(fields)
    assert asyncio.run(translator.translate(english, fields, "isiZulu")) == (
        "Aspirin\nℹ️ Thatha half a tablet every other day."
    )
    fields = PARACETAMOL
    english = english_for(fields)
    assert asyncio.run(translator.translate(english, fields, "French")) == english
    assert asyncio.run(translator.translate(english, fields, "english")) == english


def test_missing_vocabulary_raises(tmp_path):
    translator = InstructionTranslator(VocabularyLookup(str(tmp_path / "missing"), ttl=300))
    with pytest.raises(LookupUnavailable):
        asyncio.run(translator.translate(english_for(PARACETAMOL), PARACETAMOL, "isiZulu"))
