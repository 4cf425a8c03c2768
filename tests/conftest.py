import os
import tempfile

# Sessions written by the app module under test go to a throwaway directory
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="mzansimed-sessions-")
os.environ["S3_BUCKET_NAME"] = ""
os.environ["WHATSAPP_TOKEN"] = ""
os.environ["WHATSAPP_PHONE_NUMBER_ID"] = ""

import httpx
import pytest

from mzansimed.catalog import MedicationCatalog
from mzansimed.manager import SessionManager
from mzansimed.messaging import InstructionDispatcher
from mzansimed.vocabulary import VocabularyLookup

HEADER = "english,afrikaans,isiXhosa,isiZulu\n"

VOCABULARY_ROWS = {
    "Dosage": [
        "500mg tablet,500mg tablet,500mg ipilisi,500mg ithebhulethi",
        "1 tablet,1 tablet,1 ipilisi,1 iphilisi",
        "2.5ml,2.5ml,2.5ml,2.5ml",
    ],
    "Frequency": [
        "Three times daily,Drie keer per dag,Kathathu ngosuku,Kathathu ngosuku",
        "Twice daily,Twee keer per dag,Kabini ngosuku,Kabili ngosuku",
        "Once daily,Een keer per dag,Kanye ngosuku,Kanye ngosuku",
    ],
    "Intervals": [
        "Every 8 hours,Elke 8 uur,Rhoqo emva kweeyure ezi-8,Njalo emva kwamahora ayisishiyagalombili",
    ],
    # No morning/afternoon/evening rows: those words stay as they are
    "Time_of_Day": [
        "Night,Nag,Ebusuku,Ebusuku",
        "Noon,Middag,Emini,Emini",
    ],
    "Precautions": [
        "Take with food,Neem saam met kos,Thabatha nokutya,Thatha nokudla",
        "Avoid alcohol,Vermy alkohol,Kuphephe utywala,Gwema utshwala",
    ],
}

MEDICATION_ROWS = [
    "name,searchTerms",
    '"Paracetamol, oral",panado pain fever',
    '"Ibuprofen, 200mg tablets",nurofen pain',
    '"Amoxicillin, 500mg capsules",antibiotic',
    '"Propranolol, 40mg tablets",beta blocker',
]


@pytest.fixture
def vocab_dir(tmp_path):
    """A small vocabulary with one column per supported language."""
    directory = tmp_path / "translations_db"
    directory.mkdir()
    for category, rows in VOCABULARY_ROWS.items():
        (directory / f"{category}.csv").write_text(HEADER + "\n".join(rows) + "\n", encoding="utf-8")
    (directory / "medications.csv").write_text("\n".join(MEDICATION_ROWS) + "\n", encoding="utf-8")
    return directory


@pytest.fixture
def vocabulary(vocab_dir):
    return VocabularyLookup(str(vocab_dir), ttl=300)


@pytest.fixture
def sent_messages():
    return []


@pytest.fixture
def dispatcher(sent_messages):
    def handler(request):
        sent_messages.append(request)
        return httpx.Response(200, json={"messages": [{"id": "wamid.test"}]})

    return InstructionDispatcher(
        token="test-token",
        phone_number_id="1234567890",
        api_url="https://graph.example.test/v22.0",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def manager(tmp_path, vocab_dir, vocabulary, dispatcher):
    return SessionManager(
        storage_dir=str(tmp_path / "sessions"),
        vocabulary=vocabulary,
        catalog=MedicationCatalog(str(vocab_dir), ttl=300),
        dispatcher=dispatcher,
    )
