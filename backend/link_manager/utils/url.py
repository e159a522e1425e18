"""URL normalization utility for comparing link destinations.

Produces a canonical comparison key for any href found in a document:
- Rejects mailto:, tel:, javascript: and fragment-only links (empty key)
- Resolves protocol-relative and relative URLs against the site home URL
- Removes query strings and fragments
- Lowercases scheme and hostname, strips a leading 'www.'
- Collapses index.php / index.htm / index.html to the directory
- Removes trailing slashes

Two URLs are the same link when their keys are equal and non-empty.
"""

import re
from urllib.parse import urlparse

from link_manager.core.logging import get_logger

logger = get_logger("url_normalizer")

_UNSAFE_PREFIX = re.compile(r"^(mailto:|tel:|javascript:|#)", re.IGNORECASE)
_HTTP_PREFIX = re.compile(r"^https?://", re.IGNORECASE)
_QUERY_OR_FRAGMENT = re.compile(r"[#?].*$", re.DOTALL)
_INDEX_SUFFIX = re.compile(r"/index\.(php|html?|htm)$", re.IGNORECASE)


class URLNormalizer:
    """Canonicalizes URLs relative to a site's home URL.

    The normalizer is immutable and holds no per-document state, so one
    instance can be shared across concurrent rewrites of the same site.
    """

    def __init__(self, home_url: str) -> None:
        """Initialize normalizer for a site.

        Args:
            home_url: The site home URL, e.g. "https://example.com".
        """
        self.home_url = (home_url or "").strip()
        try:
            self.home_scheme = urlparse(self.home_url).scheme or "https"
        except ValueError:
            self.home_scheme = "https"

    def normalize(self, url: str | None) -> str:
        """Return the canonical key for a URL, or "" if it is not comparable.

        Args:
            url: Any href value: absolute, relative or protocol-relative.

        Returns:
            "scheme://host/path" without trailing slash, or "" for empty,
            mailto:, tel:, javascript: and fragment-only URLs.
        """
        u = (url or "").strip()
        if not u:
            return ""
        if _UNSAFE_PREFIX.match(u):
            return ""

        if u.startswith("//"):
            u = f"{self.home_scheme}:{u}"

        if u.startswith("/") and not _HTTP_PREFIX.match(u):
            u = self.home_url.rstrip("/") + u
        elif not _HTTP_PREFIX.match(u):
            u = self.home_url.rstrip("/") + "/" + u.lstrip("/")

        u = _QUERY_OR_FRAGMENT.sub("", u)

        try:
            parsed = urlparse(u)
            host = parsed.hostname
        except ValueError:
            logger.debug("URL parsing failed, using raw key", extra={"url": u[:200]})
            host = None

        if not host:
            return u.lower().rstrip("/")

        scheme = f"{parsed.scheme.lower()}://" if parsed.scheme else "http://"
        host = host.lower()
        if host.startswith("www."):
            host = host[4:]

        path = _INDEX_SUFFIX.sub("/", parsed.path or "")
        path = path.rstrip("/")

        return f"{scheme}{host}{path}".rstrip("/")

    def urls_equal(self, url1: str | None, url2: str | None) -> bool:
        """Check if two URLs refer to the same link.

        URLs whose key is empty never compare equal, not even to themselves.
        """
        n1 = self.normalize(url1)
        n2 = self.normalize(url2)
        if not n1 or not n2:
            return False
        return n1 == n2


def normalize_url(url: str | None, home_url: str) -> str:
    """Normalize a URL against a site home URL.

    Example:
        >>> normalize_url("//WWW.Example.com/Blog/index.php?p=1#top", "https://example.com")
        'https://example.com/Blog'
    """
    return URLNormalizer(home_url).normalize(url)


def urls_equal(url1: str | None, url2: str | None, home_url: str) -> bool:
    """Check if two URLs refer to the same link on a site."""
    return URLNormalizer(home_url).urls_equal(url1, url2)
