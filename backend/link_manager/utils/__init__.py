"""Utility modules shared by the link services."""

from link_manager.utils.url import URLNormalizer, normalize_url, urls_equal
from link_manager.utils.url_scanner import extract_urls_from_html

__all__ = [
    "URLNormalizer",
    "extract_urls_from_html",
    "normalize_url",
    "urls_equal",
]
