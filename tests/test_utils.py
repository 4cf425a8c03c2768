from mzansimed.utils import expand_abbreviation


def test_expand_frequency():
    """Test whole-value frequency shorthand."""
    assert expand_abbreviation("frequency", "tid") == "Three times daily"
    assert expand_abbreviation("frequency", " BID ") == "Twice daily"
    assert expand_abbreviation("frequency", "Twice daily") is None


def test_expand_interval():
    assert expand_abbreviation("interval", "q8h") == "Every 8 hours"
    assert expand_abbreviation("interval", "qd") == "Every 24 hours"


def test_expand_dosage_tokens():
    """Test that only standalone tokens are expanded."""
    assert expand_abbreviation("dosage", "2 tabs") == "2 tablets"
    assert expand_abbreviation("dosage", "1 Tab") == "1 tablet"
    assert expand_abbreviation("dosage", "1 tablet") is None


def test_expand_time_of_day():
    """Test that the longest abbreviation wins."""
    assert expand_abbreviation("time_of_day", "m. and n.") == "morning and night"
    assert expand_abbreviation("time_of_day", "p.m.") == "afternoon"
    assert expand_abbreviation("time_of_day", "morning") is None


def test_no_expansion():
    assert expand_abbreviation("name", "tid") is None
    assert expand_abbreviation("frequency", "") is None
