"""
Text sanitization for member-supplied narratives.

Report reasons, appeal narratives and resolution comments are rendered in the
moderation dashboard, so HTML is stripped before storage.
"""

from typing import Optional

import bleach

from models.exceptions import ValidationException


def sanitize_plain_text(content: Optional[str]) -> Optional[str]:
    """
    Strip all HTML tags for plain text fields.

    Args:
        content: Raw content from user input

    Returns:
        Plain text with all HTML removed, or None if input is None

    Examples:
        >>> sanitize_plain_text('<script>alert(1)</script>Spam')
        'alert(1)Spam'
        >>> sanitize_plain_text('<b>Bold</b> text')
        'Bold text'
    """
    if content is None:
        return None

    return bleach.clean(content, tags=[], strip=True)


def require_plain_text(
    content: Optional[str], field_name: str, max_length: int | None = None
) -> str:
    """
    Sanitize a required text field and reject it if nothing is left.

    Args:
        content: Raw content from user input
        field_name: Name used in the error message
        max_length: Optional upper bound on the cleaned length

    Returns:
        Trimmed plain text

    Raises:
        ValidationException: If the cleaned text is empty or too long
    """
    cleaned = (sanitize_plain_text(content) or "").strip()
    if not cleaned:
        raise ValidationException(f"{field_name} must not be empty")
    if max_length is not None and len(cleaned) > max_length:
        raise ValidationException(
            f"{field_name} must be at most {max_length} characters"
        )
    return cleaned
