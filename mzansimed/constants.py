"""
MzansiMed - Instruction Constants
Centralized storage for the glyph markers, placeholders and static vocabulary
shared by the parser, composer and translator.
"""


# Locale-independent anchors. Generated lines are recognised by these
# prefixes only, never by their wording.
DOSAGE_MARKER = "ℹ️"
TIME_MARKER = "🕜"
BULLET = "•"

TAKE_VERB = "Take"
PRECAUTIONS_HEADER = "Precautions"

# Order matters: the time-of-day line lists periods in this order.
TIME_OF_DAY_EMOJIS = {
    "morning": "🌅",
    "afternoon": "☀️",
    "evening": "🌆",
    "night": "🌃",
}

# Words substituted in the translated pane for the time-of-day field.
TIME_OF_DAY_WORDS = ["morning", "afternoon", "evening", "night", "noon"]

TRANSLATED_PLACEHOLDER = "This will have the translated instructions"
LOADING_PLACEHOLDER = "Loading..."
TRANSLATION_ERROR = "Translation error - showing English version"

# Texts shown in the translated pane that are not instructions.
PLACEHOLDER_TEXTS = (TRANSLATED_PLACEHOLDER, LOADING_PLACEHOLDER, TRANSLATION_ERROR)

DEFAULT_LANGUAGE = "isiZulu"

VOCABULARY_CATEGORIES = ["Dosage", "Frequency", "Intervals", "Time_of_Day", "Precautions"]

# Column order of every vocabulary CSV.
LANGUAGE_COLUMNS = ["english", "afrikaans", "isiXhosa", "isiZulu"]

STATIC_TRANSLATIONS = {
    "take": {
        "english": "take",
        "afrikaans": "vat",
        "isiXhosa": "thabatha",
        "isiZulu": "thatha",
    },
    "precautionsHeader": {
        "english": "Precautions",
        "afrikaans": "Voorsorgmaatreëls",
        "isiXhosa": "Ukulumkela",
        "isiZulu": "Ukuqaphela",
    },
}

# Quick-entry shorthand, expanded when the pharmacist presses Enter.
FREQUENCY_ABBREVIATIONS = {
    "tid": "Three times daily",
    "bid": "Twice daily",
    "qd": "Once daily",
    "qid": "Four times daily",
    "qw": "Once weekly",
    "biw": "Twice weekly",
    "q2w": "Every two weeks",
}

INTERVAL_ABBREVIATIONS = {
    "q4h": "Every 4 hours",
    "q6h": "Every 6 hours",
    "q8h": "Every 8 hours",
    "q12h": "Every 12 hours",
    "qd": "Every 24 hours",
    "q2d": "Every 48 hours",
    "q3d": "Every 72 hours",
}

DOSAGE_ABBREVIATIONS = {
    "tab": "tablet",
    "tabs": "tablets",
}

TIME_OF_DAY_ABBREVIATIONS = {
    "m.": "morning",
    "n.": "night",
    "p.m.": "afternoon",
}
