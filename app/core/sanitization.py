"""Input sanitization utilities."""
import re
from typing import List, Optional

from app.core.constants import (
    MAX_OPTION_TEXT_LENGTH,
    MAX_POLL_DESCRIPTION_LENGTH,
    MAX_POLL_TITLE_LENGTH,
)


def sanitize_text(text: str, max_length: Optional[int] = None, strip_html: bool = True) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Note: This function strips HTML tags and normalizes whitespace, but does NOT
    escape HTML entities because the dashboard escapes output when rendering.
    Double-escaping would cause entities to display literally (e.g., "&lt;" instead of "<").

    Args:
        text: The input text to sanitize
        max_length: Optional maximum length to enforce
        strip_html: Whether to strip HTML tags (default True)

    Returns:
        Sanitized text with HTML tags removed and whitespace normalized

    Raises:
        ValueError: If text exceeds max_length or contains dangerous patterns
    """
    if not isinstance(text, str):
        raise ValueError("Input must be a string")

    sanitized = text.strip()

    # Enforce maximum length before processing to prevent length-based attacks
    if max_length and len(sanitized) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    if strip_html:
        sanitized = re.sub(r'<[^>]*>', '', sanitized)

    # Reject inputs that still contain HTML-like patterns after stripping
    if '<' in sanitized or '>' in sanitized:
        raise ValueError("Input contains invalid HTML-like patterns")

    sanitized = re.sub(r'\s+', ' ', sanitized)

    return sanitized.strip()


def sanitize_poll_title(title: str) -> str:
    """
    Sanitize poll title input.

    Raises:
        ValueError: If the title is empty after trimming or too long
    """
    sanitized = sanitize_text(title, max_length=MAX_POLL_TITLE_LENGTH)

    if not sanitized:
        raise ValueError("Poll title cannot be empty")

    return sanitized


def sanitize_poll_description(description: Optional[str]) -> Optional[str]:
    """Sanitize an optional description, mapping blank input to None."""
    if description is None:
        return None

    # Descriptions keep their line breaks, so only tags are stripped here
    if len(description.strip()) > MAX_POLL_DESCRIPTION_LENGTH:
        raise ValueError(
            f"Description exceeds maximum length of {MAX_POLL_DESCRIPTION_LENGTH} characters"
        )
    sanitized = re.sub(r'<[^>]*>', '', description).strip()
    if '<' in sanitized or '>' in sanitized:
        raise ValueError("Input contains invalid HTML-like patterns")

    return sanitized or None


def sanitize_option_texts(options: List[str]) -> List[str]:
    """
    Sanitize a list of option texts.

    Blank entries are dropped rather than rejected; the caller decides
    whether enough options remain.

    Args:
        options: Raw option texts in display order

    Returns:
        List of sanitized, non-blank option texts in the same order
    """
    sanitized = []
    for option in options:
        cleaned = sanitize_text(option, max_length=MAX_OPTION_TEXT_LENGTH)
        if cleaned:
            sanitized.append(cleaned)
    return sanitized
