"""
Database Module for The Feedback Loop

This module handles the Supabase connection and every query the pipelines
and the feed builder run against the posts table.
"""

from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from config.settings import AppSettings
from utils.exceptions import ConfigurationError, HistoryFetchError, QueryError
from utils.logger import get_logger

logger = get_logger(__name__)

POSTS_TABLE = "posts"
HISTORY_COLUMNS = "title, summary, content"
VISUALIZER_COLUMNS = "id, title, summary, slug, ai_writer"


def create_supabase_client(app_settings: AppSettings) -> Client:
    """
    Create the Supabase client used for both the datastore and storage.

    Args:
        app_settings: Settings loaded at startup.

    Returns:
        Client: A connected Supabase client.

    Raises:
        ConfigurationError: If the URL or key is missing.
    """
    if not app_settings.supabase_url or not app_settings.supabase_key:
        raise ConfigurationError("Missing Supabase URL or key",
                                 missing=["SUPABASE_URL", "SUPABASE_KEY"])

    if not app_settings.uses_service_role:
        logger.warning("No service role key configured; writes may be blocked by row-level security")

    return create_client(app_settings.supabase_url, app_settings.supabase_key)


class PostRepository:
    """Reads and writes rows of the posts table."""

    def __init__(self, client: Client, table: str = POSTS_TABLE):
        """
        Initialize the repository.

        Args:
            client: Supabase client (or a compatible mock in tests).
            table: Name of the posts table.
        """
        self.client = client
        self.table = table

    def _posts(self):
        return self.client.table(self.table)

    def get_writer_history(self, writer: str, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Fetch a writer's most recent posts for style memory and topic avoidance.

        Args:
            writer: Persona full name stored in ai_writer.
            limit: Maximum number of rows.

        Returns:
            List[Dict]: Rows with title, summary and content, newest first.

        Raises:
            HistoryFetchError: If the query fails.
        """
        try:
            response = (
                self._posts()
                .select(HISTORY_COLUMNS)
                .eq("ai_writer", writer)
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            return response.data or []
        except Exception as e:
            raise HistoryFetchError(f"Could not fetch history for {writer}: {e}") from e

    def insert_post(self, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Insert a new post.

        Args:
            payload: Column values for the new row.

        Returns:
            Optional[Dict]: The stored row if the backend returned it.

        Raises:
            QueryError: If the insert fails.
        """
        try:
            response = self._posts().insert(payload).execute()
        except Exception as e:
            raise QueryError(f"Error inserting post '{payload.get('slug')}': {e}") from e

        rows = response.data or []
        logger.info(f"Inserted post: {payload.get('slug')}")
        return rows[0] if rows else None

    def get_posts_missing_images(self, limit: int = 1) -> List[Dict[str, Any]]:
        """
        Fetch the newest posts that do not have an image yet.

        Args:
            limit: Batch size.

        Returns:
            List[Dict]: Rows with id, title, summary, slug and ai_writer.

        Raises:
            QueryError: If the query fails.
        """
        try:
            response = (
                self._posts()
                .select(VISUALIZER_COLUMNS)
                .is_("image_url", "null")
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
            return response.data or []
        except Exception as e:
            raise QueryError(f"Error fetching posts without images: {e}") from e

    def update_image_url(self, post_id: int, image_ref: str) -> None:
        """
        Link an image to a post.

        Args:
            post_id: posts.id of the row to update.
            image_ref: Public URL or bare filename.

        Raises:
            QueryError: If the update fails.
        """
        try:
            self._posts().update({"image_url": image_ref}).eq("id", post_id).execute()
            logger.info(f"Updated image for post id: {post_id}")
        except Exception as e:
            raise QueryError(f"Error updating image for post {post_id}: {e}") from e

    def get_published_posts(self) -> List[Dict[str, Any]]:
        """
        Fetch all published posts, newest first.

        Raises:
            QueryError: If the query fails.
        """
        try:
            response = (
                self._posts()
                .select("*")
                .eq("status", "published")
                .order("published_at", desc=True)
                .execute()
            )
            return response.data or []
        except Exception as e:
            raise QueryError(f"Error fetching published posts: {e}") from e

    def get_post_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        """
        Fetch one published post by its slug.

        Returns:
            Optional[Dict]: The row, or None if there is no such published post.

        Raises:
            QueryError: If the query fails.
        """
        try:
            response = (
                self._posts()
                .select("*")
                .eq("slug", slug)
                .eq("status", "published")
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise QueryError(f"Error fetching post with slug {slug}: {e}") from e

        rows = response.data or []
        return rows[0] if rows else None
