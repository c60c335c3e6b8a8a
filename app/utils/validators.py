"""Custom validation utilities."""

import html
import re

# Lower-case stems; matched on word boundaries
PROFANITY_WORDS = frozenset({
    "arse",
    "asshole",
    "bastard",
    "bitch",
    "bollocks",
    "crap",
    "damn",
    "fuck",
    "shit",
    "slut",
    "wanker",
})

_TAG_RE = re.compile(r"<[^>]*>")
_WORD_RE = re.compile(r"[a-z]+")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_password_strength(password: str) -> str:
    """Check a password against the account password policy.

    At least 8 characters with an upper-case letter, a lower-case letter,
    a digit and a special character.

    Args:
        password: Plain-text password

    Returns:
        str: The password, unchanged

    Raises:
        ValueError: Describing the first rule that is not met
    """
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain an uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain a lowercase letter")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain a digit")
    if not re.search(r"[^A-Za-z0-9]", password):
        raise ValueError("Password must contain a special character")
    return password


def sanitize_text(value: str | None) -> str | None:
    """Strip markup and escape HTML special characters."""
    if value is None:
        return None
    stripped = _TAG_RE.sub("", value).strip()
    return html.escape(stripped, quote=True)


def contains_profanity(value: str) -> bool:
    return any(word in PROFANITY_WORDS for word in _WORD_RE.findall(value.lower()))


def is_valid_time_of_day(value: str) -> bool:
    """True for 24h HH:MM strings such as 09:30 or 22:00."""
    return bool(_TIME_RE.match(value))


def normalize_sa_phone(phone: str) -> str:
    """Normalize a South African number to +27XXXXXXXXX.

    Accepts 0821234567, 082 123 4567, 27821234567 and +27821234567.
    """
    cleaned = re.sub(r"[\s\-\(\)]", "", phone)
    if cleaned.startswith("+27"):
        return cleaned
    if cleaned.startswith("27") and len(cleaned) == 11:
        return f"+{cleaned}"
    if cleaned.startswith("0") and len(cleaned) == 10:
        return f"+27{cleaned[1:]}"
    return cleaned
