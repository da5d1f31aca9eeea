"""Text cleanup for names, questions, answers and guesses."""


def clean_text(value: object, max_length: int) -> str:
    """Trim surrounding whitespace and cut to max_length characters.

    None and non-string values are coerced to text first, so a missing field
    yields an empty string rather than raising.
    """
    if value is None:
        return ""
    return str(value).strip()[:max_length]


def normalize_answer(value: object) -> str:
    """Map raw answer or guess text to its canonical comparison form.

    Comparison is insensitive to surrounding whitespace and letter case.
    """
    if value is None:
        return ""
    return str(value).strip().casefold()
