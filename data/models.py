"""
Data Models for The Feedback Loop

This module contains data classes used throughout the application: the
persisted Post row, the editorial record produced by the SENTINEL pass,
persona descriptors and the parsed form of a system alert.
"""

import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional

# datetime.fromisoformat before 3.11 only accepts 3 or 6 fractional digits
_FRACTION_PATTERN = re.compile(r"\.(\d+)")


class PostStatus:
    """Allowed values of posts.status."""
    DRAFT = "draft"
    PUBLISHED = "published"


@dataclass(frozen=True)
class Persona:
    """A writing identity from the persona registry."""
    key: str                           # CLI key, e.g. 'AXEL'
    full_name: str                     # Stored in posts.ai_writer
    category: str                      # Category every post by this persona must carry
    role: str
    tone: str
    instruction: str
    model: str                         # Preferred text-generation model


@dataclass
class ParsedAlert:
    """Typed fields recovered from a free-text system alert. Never persisted."""
    integrity: Optional[float] = None
    fact_check: Optional[str] = None
    action: Optional[str] = None


@dataclass
class Post:
    """A row of the posts table."""
    title: Optional[str] = None
    slug: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    published_at: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    cleaned_markdown: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None    # Absolute URL, bare filename, or None (pending visualization)
    source_url: Optional[str] = None
    status: str = PostStatus.DRAFT
    ai_writer: Optional[str] = None
    ai_editor: Optional[str] = None
    system_alert: Optional[str] = None
    integrity_scan: Optional[float] = None
    fact_check: Optional[str] = None
    editorial_action: Optional[str] = None
    editorial_note: Optional[str] = None
    seo_keywords: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Post":
        """Build a Post from a datastore row, ignoring unknown columns."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in (row or {}).items() if k in known}
        if values.get("seo_keywords") is None:
            values["seo_keywords"] = []
        return cls(**values)

    def published_datetime(self) -> Optional[datetime]:
        """Parse published_at (falling back to created_at) into a datetime."""
        stamp = self.published_at or self.created_at
        if not stamp:
            return None
        stamp = stamp.replace('Z', '+00:00')
        stamp = _FRACTION_PATTERN.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), stamp, count=1)
        try:
            return datetime.fromisoformat(stamp)
        except ValueError:
            return None


@dataclass
class EditorialRecord:
    """
    Structured output of the editorial pass, ready to be inserted.

    The alert-related fields are optional because the editorial schema has
    changed over time: some records carry separate typed fields, others only
    the free-text system_alert.
    """
    ai_writer: str
    ai_editor: str
    category: str
    title: str
    slug: str
    summary: str
    content: str
    system_alert: Optional[str] = None
    integrity_scan: Optional[float] = None
    fact_check: Optional[str] = None
    editorial_action: Optional[str] = None
    editorial_note: Optional[str] = None
    seo_keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Return every field, including empty optional ones."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_payload(self, status: str, published_at: datetime) -> Dict[str, Any]:
        """
        Build the posts-table insert payload.

        Args:
            status: Value for posts.status.
            published_at: Publish timestamp (may be in the future).

        Returns:
            Dict[str, Any]: Column values; optional fields that are None are omitted.
        """
        payload = {k: v for k, v in self.to_dict().items() if v is not None}
        payload["status"] = status
        payload["published_at"] = published_at.isoformat()
        return payload
