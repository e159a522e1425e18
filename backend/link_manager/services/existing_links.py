"""Detection of links already present on a page.

Collects destinations from the parsed tree (every <a href>) and from a raw
scan of the original markup, which also sees links rendered by template
and shortcode embeds. Entries whose URL is already present are marked
applied before any insertion, so a destination is never added twice.
"""

from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from link_manager.core.logging import get_logger
from link_manager.services.link_entries import LinkEntry
from link_manager.utils.url import URLNormalizer
from link_manager.utils.url_scanner import extract_urls_from_html

logger = get_logger(__name__)


@dataclass
class ExistingLinks:
    """Destinations already linked from one document.

    Attributes:
        normalizer: URL normalizer for the document's site.
        canonical: Canonical keys of every comparable URL.
        literal: Raw URL strings in first-seen order, kept for URLs whose
            canonical key is empty.
    """

    normalizer: URLNormalizer
    canonical: set[str] = field(default_factory=set)
    literal: list[str] = field(default_factory=list)

    def add(self, url: str) -> None:
        url = (url or "").strip()
        if not url or url == "#":
            return
        key = self.normalizer.normalize(url)
        if key:
            self.canonical.add(key)
        if url not in self.literal:
            self.literal.append(url)

    def contains(self, entry: LinkEntry) -> bool:
        """Check whether an entry's destination is already linked."""
        if entry.canonical_url:
            return entry.canonical_url in self.canonical
        return entry.raw_url in self.literal


def collect_existing_links(
    soup: BeautifulSoup,
    markup: str,
    normalizer: URLNormalizer,
) -> ExistingLinks:
    """Collect link destinations from the parsed tree and the raw markup.

    Args:
        soup: The parsed document.
        markup: The original, unparsed markup of the same document.
        normalizer: URL normalizer for the document's site.
    """
    existing = ExistingLinks(normalizer=normalizer)

    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href")
        if isinstance(href, list):
            href = " ".join(href)
        existing.add(str(href))

    for url in extract_urls_from_html(markup):
        existing.add(url)

    logger.debug(
        "Collected existing links",
        extra={
            "canonical_count": len(existing.canonical),
            "literal_count": len(existing.literal),
        },
    )
    return existing


def mark_present_entries(
    entries: list[LinkEntry],
    existing: ExistingLinks,
) -> list[LinkEntry]:
    """Mark entries whose destination is already on the page as applied.

    Returns:
        The entries marked by this call.
    """
    marked: list[LinkEntry] = []
    for entry in entries:
        if entry.applied:
            continue
        if existing.contains(entry):
            entry.applied = True
            marked.append(entry)
    return marked
