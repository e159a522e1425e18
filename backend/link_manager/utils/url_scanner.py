"""Raw-markup URL scanning.

Finds link destinations in unparsed HTML without building a tree. Links
rendered by template and shortcode embeds, or left in comments and widget
settings, still count when deciding whether a URL is already on the page.

Sources, in order:
- href values of <a> tags (quoted or unquoted)
- any quoted href attribute
- absolute and protocol-relative URLs inside attribute values, HTML
  comments and the markup as a whole
"""

import re

_ANCHOR_HREF = re.compile(
    r"""<a\s+[^>]*?href\s*=\s*(["']?)([^"'\s>]+)\1[^>]*>""",
    re.IGNORECASE,
)
_QUOTED_HREF = re.compile(r"""href\s*=\s*["']([^"']+)["']""", re.IGNORECASE)
_ATTRIBUTE_VALUE = re.compile(r"""\b[^\s=<>]+=(["'])(.*?)\1""", re.DOTALL)
_COMMENT = re.compile(r"<!--(.*?)-->", re.DOTALL)
_BARE_URL = re.compile(
    r"""(?:(?:https?:)?//[^\s"'<>]+)|(?:https?://[^\s"'<>]+)""",
    re.IGNORECASE,
)

# Punctuation that trails a URL in prose or markup rather than belonging to it
_TRAILING_PUNCTUATION = ".,;:)]}>\"'"


def extract_urls_from_html(html: str) -> list[str]:
    """Extract every URL-looking string from raw HTML.

    Args:
        html: Unparsed markup.

    Returns:
        Unique URLs in first-seen order. Empty and "#" values are dropped.
    """
    if not isinstance(html, str) or not html:
        return []

    urls: list[str] = []
    seen: set[str] = set()

    def _add(candidate: str) -> None:
        if candidate and candidate != "#" and candidate not in seen:
            seen.add(candidate)
            urls.append(candidate)

    for match in _ANCHOR_HREF.finditer(html):
        _add(match.group(2).strip())

    for match in _QUOTED_HREF.finditer(html):
        _add(match.group(1).strip())

    candidates: list[str] = [
        match.group(2) for match in _ATTRIBUTE_VALUE.finditer(html) if match.group(2)
    ]
    candidates.extend(
        match.group(1) for match in _COMMENT.finditer(html) if match.group(1)
    )
    candidates.append(html)

    for candidate in candidates:
        for match in _BARE_URL.finditer(candidate):
            _add(match.group(0).strip().rstrip(_TRAILING_PUNCTUATION))

    return urls
