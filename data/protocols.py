"""
Data Layer Protocol Definitions

This module defines typing.Protocol interfaces for data layer operations.
These protocols enable dependency injection for datastore and object storage
operations, making the pipelines testable without a real Supabase project.

Protocols defined:
- PostStorage: Interface for reading and writing rows of the posts table
- ImageStore: Interface for uploading images to the blog-images bucket
"""

from typing import Any, Dict, List, Optional, Protocol


class PostStorage(Protocol):
    """Protocol defining the interface for posts-table operations.

    Implementations should raise QueryError (or a subclass) when the backend
    rejects a request, rather than returning partial results.
    """

    def get_writer_history(self, writer: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Return the most recent posts written by a persona, newest first.

        Args:
            writer: Persona full name as stored in posts.ai_writer.
            limit: Maximum number of rows.

        Returns:
            Rows with at least title, summary and content.
        """
        ...

    def insert_post(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Insert one post row and return the stored row when available."""
        ...

    def get_posts_missing_images(self, limit: int = 1) -> List[Dict[str, Any]]:
        """Return posts whose image_url is NULL, newest first."""
        ...

    def update_image_url(self, post_id: int, image_ref: str) -> None:
        """Set posts.image_url for one post."""
        ...

    def get_published_posts(self) -> List[Dict[str, Any]]:
        """Return published posts, newest first."""
        ...

    def get_post_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        """Return one published post by slug, or None."""
        ...


class ImageStore(Protocol):
    """Protocol defining the interface for image object storage."""

    def upload_png(self, filename: str, data: bytes) -> str:
        """Upload PNG bytes without overwriting; return the stored object path."""
        ...

    def public_url(self, filename: str) -> str:
        """Return the public URL for a stored object."""
        ...
