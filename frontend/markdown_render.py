"""
Markdown Rendering Utilities

Converts stored post content to HTML for pages and feed items, and to plain
text for previews and meta descriptions.
"""

import html
import re
from typing import Optional

import markdown

MARKDOWN_EXTENSIONS = ['fenced_code', 'tables', 'sane_lists']

_SENTINEL_MARKER = re.compile(r'\[\[\s*SENTINEL\s*:\s*"(.*?)"\s*\]\]', re.IGNORECASE | re.DOTALL)
_SINGLE_PARAGRAPH = re.compile(r'^<p>(.*)</p>$', re.DOTALL)

# Applied in order by strip_markdown()
_STRIP_RULES = [
    (re.compile(r'^#+\s+', re.MULTILINE), ''),                 # headers
    (re.compile(r'!\[([^\]]*)\]\(([^)]+)\)'), ''),             # images
    (re.compile(r'\[([^\]]+)\]\(([^)]+)\)'), r'\1'),           # links keep their text
    (re.compile(r'^\s*>\s+', re.MULTILINE), ''),               # block quotes
    (re.compile(r'^\s*[-*+]\s+', re.MULTILINE), ''),           # bullets
    (re.compile(r'^\s*\d+\.\s+', re.MULTILINE), ''),           # numbered lists
    (re.compile(r'[*_~`]{1,3}'), ''),                          # emphasis and code markers
    (re.compile(r'\n+'), ' '),
]


def normalize_newlines(text: str) -> str:
    """Turn literal backslash-n sequences (double-escaped upstream) into newlines."""
    return text.replace('\\n', '\n')


def render_sentinel_markers(text: str) -> str:
    """
    Replace [[SENTINEL: "message"]] markers with an inline element the client
    script turns into an interrupt.
    """
    def _replace(match: re.Match) -> str:
        message = html.escape(match.group(1).strip(), quote=True)
        return f'<span class="sentinel-interrupt" data-message="{message}"></span>'

    return _SENTINEL_MARKER.sub(_replace, text)


def parse_markdown(content: Optional[str], inline: bool = False) -> str:
    """
    Render stored markdown to HTML.

    Args:
        content: Markdown body (may contain literal '\\n' and SENTINEL markers).
        inline: Render without the wrapping paragraph, for titles and summaries.

    Returns:
        str: HTML, or an empty string for empty content.
    """
    if not content:
        return ''

    processed = render_sentinel_markers(normalize_newlines(content))
    rendered = markdown.markdown(processed, extensions=MARKDOWN_EXTENSIONS)

    if inline:
        match = _SINGLE_PARAGRAPH.match(rendered.strip())
        if match and '<p>' not in match.group(1):
            return match.group(1)
    return rendered


def strip_markdown(md: Optional[str]) -> str:
    """
    Reduce markdown to single-line plain text.

    >>> strip_markdown("# Title\\n**bold** text")
    'Title bold text'
    """
    if not md:
        return ''
    text = md
    for pattern, replacement in _STRIP_RULES:
        text = pattern.sub(replacement, text)
    return text.strip()
