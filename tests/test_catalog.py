import pytest

from mzansimed.catalog import MedicationCatalog
from mzansimed.vocabulary import LookupUnavailable


def test_suggest_prefix_first(vocab_dir):
    """Names starting with the query come before other matches."""
    catalog = MedicationCatalog(str(vocab_dir), ttl=300)
    assert catalog.suggest("pro") == ["Propranolol, 40mg tablets", "Ibuprofen, 200mg tablets"]
    assert catalog.suggest("PARA") == ["Paracetamol, oral"]


def test_suggest_matches_search_terms(vocab_dir):
    catalog = MedicationCatalog(str(vocab_dir), ttl=300)
    assert catalog.suggest("pain") == ["Paracetamol, oral", "Ibuprofen, 200mg tablets"]
    assert catalog.suggest("pain", limit=1) == ["Paracetamol, oral"]


def test_suggest_requires_query(vocab_dir):
    catalog = MedicationCatalog(str(vocab_dir), ttl=300)
    with pytest.raises(ValueError):
        catalog.suggest("  ")


def test_all(vocab_dir):
    medications = MedicationCatalog(str(vocab_dir), ttl=300).all()
    assert len(medications) == 4
    assert medications[0] == {"name": "Paracetamol, oral", "searchTerms": "panado pain fever"}


def test_missing_catalog(tmp_path):
    with pytest.raises(LookupUnavailable):
        MedicationCatalog(str(tmp_path), ttl=300).all()
