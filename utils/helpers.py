"""
Helper Utility Module

This module provides various helper functions used throughout The Feedback Loop.
"""

import re
import unicodedata
from typing import Any, Dict

_CODE_FENCE_PATTERN = re.compile(r'```(?:json|JSON)?|```')
_SLUG_INVALID_CHARS = re.compile(r'[^a-z0-9]+')


def truncate_text(text: str, max_length: int = 100, add_ellipsis: bool = True) -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: The text to truncate
        max_length: Maximum length
        add_ellipsis: Whether to add an ellipsis if text is truncated

    Returns:
        str: Truncated text
    """
    if not text or len(text) <= max_length:
        return text

    truncated = text[:max_length].rstrip()
    if add_ellipsis:
        truncated += "..."

    return truncated


def strip_code_fences(text: str) -> str:
    """
    Remove markdown code-fence markup that models like to wrap JSON in.

    Args:
        text: Raw model output

    Returns:
        str: The text with every ``` / ```json marker removed and whitespace trimmed
    """
    if not text:
        return ""
    return _CODE_FENCE_PATTERN.sub("", text).strip()


def slugify(text: str, max_length: int = 80) -> str:
    """
    Build a URL-safe slug: lowercase ASCII letters, digits and single hyphens.

    Args:
        text: Title or candidate slug
        max_length: Maximum slug length

    Returns:
        str: The slug, or an empty string if nothing usable remains
    """
    if not text:
        return ""
    normalized = unicodedata.normalize("NFKD", str(text)).encode("ascii", "ignore").decode("ascii")
    slug = _SLUG_INVALID_CHARS.sub("-", normalized.lower()).strip("-")
    return slug[:max_length].rstrip("-")


def safe_get(data: Dict[str, Any], *keys, default: Any = None) -> Any:
    """
    Safely get a value from a nested dictionary.

    Args:
        data: The dictionary to search
        *keys: The keys to follow
        default: Default value if key doesn't exist

    Returns:
        The value at the specified keys or the default value
    """
    for key in keys:
        try:
            data = data[key]
        except (KeyError, TypeError, IndexError):
            return default
    return data


def record_field(record: Any, name: str, default: Any = None) -> Any:
    """
    Read a field from either a row dictionary or an object with attributes.

    Args:
        record: A dict (datastore row) or a dataclass instance
        name: Field name
        default: Value returned when the field is absent

    Returns:
        The field value or the default
    """
    if record is None:
        return default
    if isinstance(record, dict):
        return safe_get(record, name, default=default)
    return getattr(record, name, default)
