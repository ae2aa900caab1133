"""
Tests for PostRepository and ImageStorage

Tests for the datastore module including the writer-history query, inserts,
the visualizer queue, image linking and storage uploads.
"""

import pytest
from unittest.mock import MagicMock, patch
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import AppSettings
from data.database import PostRepository, create_supabase_client
from data.storage import ImageStorage
from utils.exceptions import ConfigurationError, HistoryFetchError, QueryError, StorageError


class TestCreateClient:
    """Tests for client creation."""

    def test_create_client_success(self, app_settings):
        with patch('data.database.create_client') as mock_create:
            mock_create.return_value = MagicMock()
            client = create_supabase_client(app_settings)

        mock_create.assert_called_once_with("https://realproject.supabase.co", "test-service-role-key")
        assert client is mock_create.return_value

    def test_create_client_missing_values(self):
        with pytest.raises(ConfigurationError):
            create_supabase_client(AppSettings())

    def test_anon_key_logs_warning(self, capture_logs):
        anon = AppSettings(supabase_url="https://a.supabase.co", supabase_key="anon")
        with patch('data.database.create_client'):
            create_supabase_client(anon)

        assert any("row-level security" in r.getMessage() for r in capture_logs)


class TestWriterHistory:
    """Tests for the style-memory query."""

    def test_history_query_shape(self, mock_supabase):
        """
        Test that history is filtered by writer, newest first, limited.
        """
        client, query = mock_supabase
        query.data = [{'title': 'a', 'summary': 'b', 'content': 'c'}]

        rows = PostRepository(client).get_writer_history("AXEL_WIRE", limit=5)

        assert rows == query.data
        client.table.assert_called_with("posts")
        assert query.called("eq")[0][1] == ("ai_writer", "AXEL_WIRE")
        assert query.called("order")[0][2] == {"desc": True}
        assert query.called("limit")[0][1] == (5,)

    def test_history_failure_raises_history_error(self, mock_supabase):
        client, query = mock_supabase
        query.error = RuntimeError("boom")

        with pytest.raises(HistoryFetchError):
            PostRepository(client).get_writer_history("AXEL_WIRE")

    def test_history_error_is_a_query_error(self):
        assert issubclass(HistoryFetchError, QueryError)


class TestInsertPost:
    """Tests for inserting posts."""

    def test_insert_returns_stored_row(self, mock_supabase):
        client, query = mock_supabase
        query.data = [{'id': 7, 'slug': 'x'}]

        row = PostRepository(client).insert_post({'slug': 'x'})

        assert row == {'id': 7, 'slug': 'x'}
        assert query.called("insert")[0][1] == ({'slug': 'x'},)

    def test_insert_without_returned_row(self, mock_supabase):
        client, _ = mock_supabase
        assert PostRepository(client).insert_post({'slug': 'x'}) is None

    def test_insert_failure(self, mock_supabase):
        client, query = mock_supabase
        query.error = RuntimeError("duplicate key value violates unique constraint")

        with pytest.raises(QueryError):
            PostRepository(client).insert_post({'slug': 'x'})


class TestVisualizerQueries:
    """Tests for the missing-image queue and image linking."""

    def test_missing_images_query(self, mock_supabase, post_row_factory):
        client, query = mock_supabase
        query.data = [post_row_factory()]

        rows = PostRepository(client).get_posts_missing_images(limit=3)

        assert len(rows) == 1
        assert query.called("is_")[0][1] == ("image_url", "null")
        assert query.called("limit")[0][1] == (3,)

    def test_update_image_url(self, mock_supabase):
        client, query = mock_supabase

        PostRepository(client).update_image_url(4, "slug-1.png")

        assert query.called("update")[0][1] == ({"image_url": "slug-1.png"},)
        assert query.called("eq")[0][1] == ("id", 4)

    def test_update_failure(self, mock_supabase):
        client, query = mock_supabase
        query.error = RuntimeError("down")

        with pytest.raises(QueryError):
            PostRepository(client).update_image_url(4, "x.png")


class TestPublishedPosts:
    """Tests for the feed queries."""

    def test_published_posts(self, mock_supabase, post_row_factory):
        client, query = mock_supabase
        query.data = [post_row_factory()]

        assert len(PostRepository(client).get_published_posts()) == 1
        assert query.called("eq")[0][1] == ("status", "published")

    def test_post_by_slug_not_found(self, mock_supabase):
        client, _ = mock_supabase
        assert PostRepository(client).get_post_by_slug("missing") is None


class TestImageStorage:
    """Tests for the storage bucket wrapper."""

    def test_upload_never_overwrites(self):
        client = MagicMock()
        bucket = client.storage.from_.return_value

        stored = ImageStorage(client).upload_png("slug-1.png", b"png")

        assert stored == "slug-1.png"
        client.storage.from_.assert_called_with("blog-images")
        kwargs = bucket.upload.call_args.kwargs
        assert kwargs["path"] == "slug-1.png"
        assert kwargs["file_options"]["upsert"] == "false"
        assert kwargs["file_options"]["content-type"] == "image/png"

    def test_upload_failure(self):
        client = MagicMock()
        client.storage.from_.return_value.upload.side_effect = RuntimeError("Duplicate")

        with pytest.raises(StorageError):
            ImageStorage(client).upload_png("slug-1.png", b"png")

    def test_public_url(self):
        client = MagicMock()
        client.storage.from_.return_value.get_public_url.return_value = "https://x/blog-images/a.png?"

        assert ImageStorage(client).public_url("a.png") == "https://x/blog-images/a.png"

    def test_empty_public_url(self):
        client = MagicMock()
        client.storage.from_.return_value.get_public_url.return_value = ""

        with pytest.raises(StorageError):
            ImageStorage(client).public_url("a.png")
