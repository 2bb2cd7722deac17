from constants import UNKNOWN_LANGUAGE

LANGUAGE_MAP = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "hi": "Hindi",
    "zh": "Mandarin",
    "pt": "Portuguese",
    "nl": "Dutch",
    "ar": "Arabic",
    "kn": "Kannada",
    "te": "Telugu",
    "ta": "Tamil",
    "ml": "Malayalam",
    "bn": "Bengali",
    "mr": "Marathi",
    "gu": "Gujarati",
    "pa": "Punjabi",
    "th": "Thai",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "ms": "Malay",
    "tl": "Filipino",
}

# Display names offered by the language filter
LANGUAGES = list(LANGUAGE_MAP.values()) + [UNKNOWN_LANGUAGE]


def map_language(code):
    """ISO 639-1 code to display name; case-sensitive, unknown codes give 'Unknown'"""
    return LANGUAGE_MAP.get(code, UNKNOWN_LANGUAGE)
