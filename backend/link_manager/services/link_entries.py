"""Link entry preparation.

Turns the raw keyword mapping table into the entries the injector works
through: blank keywords and incomplete rows are dropped, self-links are
removed, rows sharing a destination are merged, and every keyword list is
ordered longest first so the longest phrase wins.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup
from pydantic import ValidationError

from link_manager.core.logging import get_logger
from link_manager.schemas.link_mapping import LinkMapping, PageMeta
from link_manager.utils.url import URLNormalizer

logger = get_logger(__name__)


@dataclass
class LinkEntry:
    """A deduplicated keyword set and its destination.

    Attributes:
        keywords: Keywords ordered by length, longest first.
        raw_url: The URL as written in the mapping table (used as href).
        canonical_url: Normalized comparison key ("" if not comparable).
        applied: Set once the URL is on the page, either because it was
            already there or because a link was inserted.
    """

    keywords: list[str]
    raw_url: str
    canonical_url: str
    applied: bool = False

    @property
    def key(self) -> str:
        """Merge key: the canonical URL, or the raw URL when it has none."""
        return self.canonical_url or f"raw:{self.raw_url}"


def sort_keywords(keywords: Iterable[str]) -> list[str]:
    """Deduplicate keywords and order them longest first.

    Ties keep first-seen order.
    """
    unique = list(dict.fromkeys(keywords))
    return sorted(unique, key=len, reverse=True)


def _coerce_mapping(mapping: LinkMapping | dict[str, Any]) -> LinkMapping | None:
    if isinstance(mapping, LinkMapping):
        return mapping
    try:
        return LinkMapping.model_validate(mapping)
    except ValidationError as e:
        logger.debug(
            "Dropping malformed mapping",
            extra={"error_count": e.error_count()},
        )
        return None


def _plain_title(title: str) -> str:
    if not title:
        return ""
    return BeautifulSoup(title, "html.parser").get_text().strip()


def _matches_page_identity(keywords: list[str], title_lc: str, slug_lc: str) -> bool:
    """Check whether any keyword equals or occurs in the page title or slug."""
    for keyword in keywords:
        kw_lc = keyword.strip().lower()
        if not kw_lc:
            continue
        if kw_lc in title_lc or kw_lc in slug_lc:
            return True
    return False


def build_entries(
    mappings: Iterable[LinkMapping | dict[str, Any]],
    meta: PageMeta,
    normalizer: URLNormalizer,
) -> list[LinkEntry]:
    """Build link entries for one document.

    Args:
        mappings: Rows of the keyword mapping table.
        meta: Metadata of the document being rewritten.
        normalizer: URL normalizer for the document's site.

    Returns:
        Entries in order of first appearance, one per destination.
    """
    title_lc = _plain_title(meta.title).lower()
    slug_lc = (meta.slug or "").strip().lower()

    entries_by_key: dict[str, LinkEntry] = {}

    for raw in mappings:
        mapping = _coerce_mapping(raw)
        if mapping is None:
            continue

        keywords = [kw.strip() for kw in mapping.keywords if kw and kw.strip()]
        url = (mapping.url or "").strip()
        if not keywords or not url:
            continue

        if normalizer.urls_equal(url, meta.own_url):
            logger.debug("Dropping self-link mapping", extra={"url": url})
            continue

        if not meta.is_default_content_type and _matches_page_identity(
            keywords, title_lc, slug_lc
        ):
            logger.debug(
                "Dropping mapping whose keyword names the page itself",
                extra={"url": url},
            )
            continue

        entry = LinkEntry(
            keywords=sort_keywords(keywords),
            raw_url=url,
            canonical_url=normalizer.normalize(url),
        )

        existing = entries_by_key.get(entry.key)
        if existing is None:
            entries_by_key[entry.key] = entry
        else:
            existing.keywords = sort_keywords(existing.keywords + entry.keywords)

    return list(entries_by_key.values())
