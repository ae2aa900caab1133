"""
RSS Feed Assembly

Builds the site's RSS 2.0 feed from published posts: bodies rendered from
markdown, writer and editor as dc:creator, SEO keywords as categories and
the resolved image as media:content.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Iterable, List, Optional

from config import settings
from data.models import Post
from frontend.images import resolve_image_url
from frontend.markdown_render import parse_markdown

NAMESPACES = {
    "content": "http://purl.org/rss/1.0/modules/content/",
    "media": "http://search.yahoo.com/mrss/",
    "dc": "http://purl.org/dc/elements/1.1/",
    "atom": "http://www.w3.org/2005/Atom",
}

for _prefix, _uri in NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def _ns(prefix: str, tag: str) -> str:
    return f"{{{NAMESPACES[prefix]}}}{tag}"


def site_root(site_url: str, base_path: str = "/") -> str:
    """Absolute site root including the base path, always ending in '/'."""
    root = site_url.rstrip("/")
    path = (base_path or "").strip("/")
    return f"{root}/{path}/" if path else f"{root}/"


def post_link(root: str, slug: str) -> str:
    return f"{root}posts/{slug}/"


def _aware(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return _EPOCH
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _text(parent: ET.Element, tag: str, value: Optional[str]) -> ET.Element:
    element = ET.SubElement(parent, tag)
    element.text = value or ""
    return element


def _to_post(post: Any) -> Post:
    return post if isinstance(post, Post) else Post.from_row(post)


def build_item(channel: ET.Element, post: Post, root: str,
               storage_base_url: Optional[str]) -> ET.Element:
    """Append one <item> for a post."""
    item = ET.SubElement(channel, "item")
    link = post_link(root, post.slug)

    _text(item, "title", post.title)
    _text(item, "link", link)
    guid = _text(item, "guid", link)
    guid.set("isPermaLink", "true")

    published = post.published_datetime()
    if published is not None:
        _text(item, "pubDate", format_datetime(_aware(published)))

    _text(item, "description", post.summary)
    _text(item, _ns("content", "encoded"), parse_markdown(post.cleaned_markdown or post.content))

    for keyword in post.seo_keywords or []:
        _text(item, "category", keyword)

    for creator in (post.ai_writer, post.ai_editor):
        if creator:
            _text(item, _ns("dc", "creator"), creator)

    media = ET.SubElement(item, _ns("media", "content"))
    media.set("url", resolve_image_url(post, storage_base_url))
    media.set("medium", "image")
    return item


def build_rss(posts: Iterable[Any], site_url: str, base_path: str = "/",
              storage_base_url: Optional[str] = None,
              title: str = settings.FEED_TITLE,
              description: str = settings.FEED_DESCRIPTION,
              language: str = settings.FEED_LANGUAGE) -> str:
    """
    Build the RSS document.

    Args:
        posts: Published posts (Post objects or row dicts), in any order.
        site_url: Absolute site URL.
        base_path: Path the site is served under.
        storage_base_url: Storage base used to resolve bare image filenames.
        title: Channel title.
        description: Channel description.
        language: Channel language.

    Returns:
        str: The serialized feed, newest item first.
    """
    root = site_root(site_url, base_path)
    ordered: List[Post] = sorted(
        (_to_post(p) for p in posts),
        key=lambda p: _aware(p.published_datetime()),
        reverse=True,
    )

    rss = ET.Element("rss", {"version": "2.0"})
    channel = ET.SubElement(rss, "channel")
    _text(channel, "title", title)
    _text(channel, "description", description)
    _text(channel, "link", root)
    _text(channel, "language", language)
    self_link = ET.SubElement(channel, _ns("atom", "link"))
    self_link.set("href", f"{root}{settings.FEED_OUTPUT_FILE}")
    self_link.set("rel", "self")
    self_link.set("type", "application/rss+xml")

    for post in ordered:
        if post.slug:
            build_item(channel, post, root, storage_base_url)

    return XML_DECLARATION + ET.tostring(rss, encoding="unicode")
