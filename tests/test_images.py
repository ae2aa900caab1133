"""
Tests for Image URL Resolution

Tests cover absolute URLs, placeholder host repair, bare filenames in the
storage bucket and the generative fallbacks.
"""

import pytest
import sys
import os
from urllib.parse import unquote

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from data.models import Post
from frontend.images import (
    GENERIC_FALLBACK_IMAGE, generative_fallback_url, is_real_storage_base, resolve_image_url
)

STORAGE_BASE = "https://realproject.supabase.co"


class TestAbsoluteUrls:
    """Tests for image_url values that are already URLs."""

    def test_absolute_url_returned_unchanged(self):
        post = {"title": "x", "image_url": "https://x.example/a.png"}
        assert resolve_image_url(post, STORAGE_BASE) == "https://x.example/a.png"

    def test_absolute_url_without_storage_base(self):
        post = Post(title="x", slug="x", image_url="http://cdn.example/b.jpg")
        assert resolve_image_url(post) == "http://cdn.example/b.jpg"

    def test_placeholder_host_is_rewritten(self):
        """The placeholder project host is replaced by the configured host."""
        placeholder = (f"https://{settings.PLACEHOLDER_STORAGE_HOST}/storage/v1/object/public/"
                       "blog-images/a.png")
        result = resolve_image_url({"title": "x", "image_url": placeholder}, STORAGE_BASE)

        assert settings.PLACEHOLDER_STORAGE_HOST not in result
        assert result == f"{STORAGE_BASE}/storage/v1/object/public/blog-images/a.png"

    def test_placeholder_host_kept_without_real_base(self):
        """Without a real base the URL cannot be repaired and is returned as-is."""
        placeholder = f"https://{settings.PLACEHOLDER_STORAGE_HOST}/a.png"
        assert resolve_image_url({"image_url": placeholder}, None) == placeholder


class TestBareFilenames:
    """Tests for filenames stored without a host."""

    def test_filename_resolved_against_bucket(self):
        result = resolve_image_url({"title": "x", "image_url": "slug-12345.png"}, STORAGE_BASE)
        assert result == f"{STORAGE_BASE}/storage/v1/object/public/blog-images/slug-12345.png"

    def test_trailing_slash_on_base(self):
        result = resolve_image_url({"image_url": "a.webp"}, STORAGE_BASE + "/")
        assert result == f"{STORAGE_BASE}/storage/v1/object/public/blog-images/a.webp"

    @pytest.mark.parametrize("filename", ["a.JPG", "b_c.jpeg", "d-1.2.webp"])
    def test_accepted_extensions(self, filename):
        assert resolve_image_url({"image_url": filename}, STORAGE_BASE).endswith(filename)

    def test_filename_with_placeholder_base_falls_back(self):
        """A placeholder storage base is not a real base."""
        base = f"https://{settings.PLACEHOLDER_STORAGE_HOST}"
        result = resolve_image_url({"title": "Neon Riot", "image_url": "slug-1.png"}, base)
        assert result == generative_fallback_url("Neon Riot")

    def test_unsupported_value_falls_back(self):
        result = resolve_image_url({"title": "Neon Riot", "image_url": "images/a.gif"}, STORAGE_BASE)
        assert result == generative_fallback_url("Neon Riot")


class TestFallbacks:
    """Tests for the generative fallbacks."""

    def test_none_post_returns_generic_fallback(self):
        assert resolve_image_url(None, STORAGE_BASE) == GENERIC_FALLBACK_IMAGE

    def test_missing_image_uses_title(self):
        result = resolve_image_url({"title": "Tape Loop Funeral", "image_url": None}, STORAGE_BASE)
        assert result.startswith("https://image.pollinations.ai/prompt/")
        assert "Tape Loop Funeral" in unquote(result)
        assert f"width={settings.IMAGE_WIDTH}" in result
        assert "model=flux" in result

    def test_blank_image_url_uses_title(self):
        assert resolve_image_url({"title": "t", "image_url": "   "}) == generative_fallback_url("t")

    def test_never_empty(self):
        assert resolve_image_url({}) != ""


class TestStorageBase:
    """Tests for deciding whether a storage base is usable."""

    @pytest.mark.parametrize("base,expected", [
        ("https://realproject.supabase.co", True),
        (f"https://{settings.PLACEHOLDER_STORAGE_HOST}", False),
        ("", False),
        (None, False),
        ("realproject.supabase.co", False),
    ])
    def test_is_real_storage_base(self, base, expected):
        assert is_real_storage_base(base) is expected
