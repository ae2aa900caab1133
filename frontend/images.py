"""
Image URL Resolution

Posts have stored their image in different shapes over time: a full public
URL, a URL still pointing at the placeholder project host, a bare filename in
the blog-images bucket, or nothing yet. resolve_image_url() always returns
something displayable so pages and the feed never show a broken image.
"""

import re
from typing import Any, Optional
from urllib.parse import quote, urlparse

from config import settings
from utils.helpers import record_field

POLLINATIONS_BASE = "https://image.pollinations.ai/prompt/"
FALLBACK_STYLE_PREFIX = "cyberpunk glitch art, CRT scanlines, 32-bit pixel art, "
FALLBACK_RENDER_MODEL = "flux"

GENERIC_FALLBACK_IMAGE = (
    f"{POLLINATIONS_BASE}{quote('static noise, corrupted CRT signal, glitch art')}"
    f"?width={settings.IMAGE_WIDTH}&height={settings.IMAGE_HEIGHT}"
    f"&nologo=true&model={FALLBACK_RENDER_MODEL}"
)

_BARE_FILENAME = re.compile(r'^[A-Za-z0-9._-]+\.(?:png|jpe?g|webp)$', re.IGNORECASE)


def is_real_storage_base(storage_base_url: Optional[str]) -> bool:
    """True when a storage base URL is configured and is not the placeholder project."""
    if not storage_base_url:
        return False
    parsed = urlparse(storage_base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    return settings.PLACEHOLDER_STORAGE_HOST not in parsed.netloc


def public_storage_url(storage_base_url: str, filename: str,
                       bucket: str = settings.STORAGE_BUCKET) -> str:
    """Public object URL for a file in a storage bucket."""
    return f"{storage_base_url.rstrip('/')}/storage/v1/object/public/{bucket}/{filename}"


def generative_fallback_url(title: Optional[str]) -> str:
    """Image generated on demand from the post title in the house style."""
    prompt = FALLBACK_STYLE_PREFIX + (title or "untitled transmission")
    return (
        f"{POLLINATIONS_BASE}{quote(prompt)}"
        f"?width={settings.IMAGE_WIDTH}&height={settings.IMAGE_HEIGHT}"
        f"&nologo=true&model={FALLBACK_RENDER_MODEL}"
    )


def resolve_image_url(post: Any, storage_base_url: Optional[str] = None) -> str:
    """
    Compute the best displayable image URL for a post.

    Args:
        post: A Post, a posts-table row dict, or None.
        storage_base_url: Public storage base URL (the Supabase project URL).

    Returns:
        str: An absolute URL; never empty.
    """
    if post is None:
        return GENERIC_FALLBACK_IMAGE

    image_url = record_field(post, "image_url")
    real_base = is_real_storage_base(storage_base_url)

    if isinstance(image_url, str) and image_url.strip():
        image_url = image_url.strip()

        if real_base and settings.PLACEHOLDER_STORAGE_HOST in image_url:
            image_url = image_url.replace(settings.PLACEHOLDER_STORAGE_HOST,
                                          urlparse(storage_base_url).netloc)

        if image_url.lower().startswith(("http://", "https://")):
            return image_url

        if real_base and _BARE_FILENAME.match(image_url):
            return public_storage_url(storage_base_url, image_url)

    return generative_fallback_url(record_field(post, "title"))
