"""
System Alert Parsing

The editorial pass writes a loosely templated status string such as

    [SYSTEM ALERT // SENTINEL v4.2] INTEGRITY SCAN: 87% // FACT-CHECK: Venue
    capacity confirmed. // ACTION: Cleared for broadcast.

This module turns that string into typed fields for display and builds the
canonical form when the editor only returned the separate fields. The text is
model-generated, so parsing tolerates a missing header, missing fields, decimal
scores, stray separators and labels in any order, and never raises.
"""

import re
from typing import Any, Optional

from data.models import ParsedAlert

_HEADER_PATTERN = re.compile(r'^\s*\[\s*SYSTEM[\s_]+ALERT\b[^\]]*\]\s*:?\s*', re.IGNORECASE)

_INTEGRITY_LABEL = r'INTEGRITY[\s_]+SCAN'
_FACT_CHECK_LABEL = r'FACT[\s_-]*CHECK'
_ACTION_LABEL = r'(?:ACTION|NOTE)'

# A field's free text runs until the next "LABEL:" or the end of the string
_UNTIL_NEXT_LABEL = rf'(?=\b(?:{_INTEGRITY_LABEL}|{_FACT_CHECK_LABEL}|{_ACTION_LABEL})\s*:|\Z)'

_INTEGRITY_PATTERN = re.compile(
    rf'\b{_INTEGRITY_LABEL}\s*[:=]?\s*(\d+(?:\.\d+)?)\s*%?', re.IGNORECASE)
# Older template: "[SYSTEM ALERT // SENTINEL] 87% Integrity."
_INTEGRITY_SUFFIX_PATTERN = re.compile(
    r'(\d+(?:\.\d+)?)\s*%\s*INTEGRITY\b\.?', re.IGNORECASE)
_FACT_CHECK_PATTERN = re.compile(
    rf'\b{_FACT_CHECK_LABEL}\s*:\s*(.*?){_UNTIL_NEXT_LABEL}', re.IGNORECASE | re.DOTALL)
_ACTION_PATTERN = re.compile(
    rf'\b{_ACTION_LABEL}\s*:\s*(.*?){_UNTIL_NEXT_LABEL}', re.IGNORECASE | re.DOTALL)
# Integrity label without a usable score, e.g. "INTEGRITY SCAN: N/A //"
_BARE_INTEGRITY_PATTERN = re.compile(
    rf'\b{_INTEGRITY_LABEL}\s*[:=]?.*?(?=//|\||\b(?:{_FACT_CHECK_LABEL}|{_ACTION_LABEL})\s*:|\Z)',
    re.IGNORECASE | re.DOTALL)

_SEPARATOR_CHARS = " \t\r\n/|;,"
_HAS_WORD = re.compile(r'\w')

DEFAULT_ALERT_EDITOR = "SENTINEL v4.2"


def _clean(value: str) -> Optional[str]:
    cleaned = " ".join(value.split()).strip(_SEPARATOR_CHARS)
    return cleaned or None


def _remove_span(text: str, match: re.Match) -> str:
    return text[:match.start()] + " " + text[match.end():]


def parse_system_alert(alert: Any) -> ParsedAlert:
    """
    Extract integrity score, fact-check and action from a system alert.

    Args:
        alert: The stored system_alert value (may be None or empty).

    Returns:
        ParsedAlert: Fields that were not found are None.
    """
    parsed = ParsedAlert()
    if not alert or not isinstance(alert, str):
        return parsed

    remainder = _HEADER_PATTERN.sub("", alert, count=1)
    labelled = False

    match = _INTEGRITY_PATTERN.search(remainder) or _INTEGRITY_SUFFIX_PATTERN.search(remainder)
    if match:
        parsed.integrity = float(match.group(1))
    else:
        match = _BARE_INTEGRITY_PATTERN.search(remainder)
    if match:
        labelled = True
        remainder = _remove_span(remainder, match)

    match = _FACT_CHECK_PATTERN.search(remainder)
    if match:
        labelled = True
        parsed.fact_check = _clean(match.group(1))
        remainder = _remove_span(remainder, match)

    match = _ACTION_PATTERN.search(remainder)
    if match:
        labelled = True
        parsed.action = _clean(match.group(1))
        remainder = _remove_span(remainder, match)

    # Text with no labels at all is not an alert; otherwise unlabelled text
    # stays with the action
    leftover = _clean(remainder) if labelled else None
    if leftover and _HAS_WORD.search(leftover):
        parsed.action = f"{parsed.action} {leftover}" if parsed.action else leftover

    return parsed


def format_integrity(score: float) -> str:
    """Format a score without a trailing '.0' (87.0 -> '87', 87.5 -> '87.5')."""
    return f"{float(score):g}"


def compose_system_alert(integrity: Optional[float] = None,
                         fact_check: Optional[str] = None,
                         action: Optional[str] = None,
                         editor: str = DEFAULT_ALERT_EDITOR) -> str:
    """
    Build the canonical system alert string from separate fields.

    Args:
        integrity: Integrity score (0-100).
        fact_check: Fact-check report.
        action: Recommended editorial action.
        editor: Editor identity shown in the header.

    Returns:
        str: e.g. '[SYSTEM ALERT // SENTINEL v4.2] INTEGRITY SCAN: 87% // ACTION: Publish'
    """
    parts = []
    if integrity is not None:
        parts.append(f"INTEGRITY SCAN: {format_integrity(integrity)}%")
    if fact_check:
        parts.append(f"FACT-CHECK: {fact_check}")
    if action:
        parts.append(f"ACTION: {action}")

    header = f"[SYSTEM ALERT // {editor}]"
    return f"{header} {' // '.join(parts)}" if parts else header
