import unicodedata

HASHTAG_PREFIX = "#"


def is_punctuation(char: str) -> bool:
    """True for any character in a Unicode punctuation category (Pc, Pd, Ps, Pe, Pi, Pf, Po)."""
    return unicodedata.category(char).startswith("P")


def strip_punctuation(text: str) -> str:
    """
    Remove punctuation characters from a token.
    A leading '#' is kept so hashtags can still be recognised afterwards.
    """
    keep_prefix = text.startswith(HASHTAG_PREFIX)
    body = text[1:] if keep_prefix else text
    stripped = "".join(c for c in body if not is_punctuation(c))
    return HASHTAG_PREFIX + stripped if keep_prefix else stripped


def tokenize(message: str) -> list[str]:
    """Split a message into whitespace-delimited tokens."""
    return message.split()


def normalize_word(token: str) -> str:
    """Lookup key of a token: punctuation stripped, lowercased."""
    return strip_punctuation(token).lower()
