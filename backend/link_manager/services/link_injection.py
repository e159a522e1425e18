"""Link injection service using BeautifulSoup.

LinkInjector walks a document's <p> and <div> blocks in order and, for each
mapping entry that is not yet on the page, wraps the first keyword match in
an <a> tag. Keywords are tried longest first; matches must not touch a
letter on either side. Blocks that are the protected hero block, sit in a
disallowed section or template embed, or already contain a link are
skipped. Each destination is inserted at most once per document.

The text of a block is matched as one run over its eligible text nodes, so
a phrase can match across inline markup. When a match spans more than one
text node, only the part inside the starting node is linked and the rest
of the phrase is left untouched.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup, NavigableString, ParserRejectedMarkup, Tag
from bs4.element import PreformattedString

from link_manager.core.config import get_settings
from link_manager.core.logging import get_logger
from link_manager.schemas.link_mapping import LinkMapping, PageMeta
from link_manager.services.existing_links import (
    ExistingLinks,
    collect_existing_links,
    mark_present_entries,
)
from link_manager.services.hero_block import find_hero_block
from link_manager.services.link_entries import LinkEntry, build_entries
from link_manager.services.zone_classifier import is_blocked_zone, is_eligible_text_node
from link_manager.utils.url import URLNormalizer

logger = get_logger(__name__)

TARGET_BLOCK_TAGS = ["p", "div"]

NBSP = "\xa0"

# Whitespace that makes a text node blank (non-breaking space is content)
_BLANK_CHARS = " \t\n\r\x00\x0b"


def compile_keyword_pattern(keyword: str) -> re.Pattern[str] | None:
    """Compile a case-insensitive literal pattern for a keyword.

    Use search_keyword to apply the letter-boundary rule.

    Returns:
        The compiled pattern, or None if the keyword is blank or the
        pattern cannot be compiled.
    """
    keyword = keyword.strip()
    if not keyword:
        return None
    try:
        return re.compile(re.escape(keyword), re.IGNORECASE)
    except re.error as e:
        logger.warning(
            "Invalid keyword pattern, skipping keyword",
            extra={"keyword": keyword, "error": str(e)},
        )
        return None


def _touches_letter(text: str, start: int, end: int) -> bool:
    before = text[start - 1] if start > 0 else ""
    after = text[end] if end < len(text) else ""
    return before.isalpha() or after.isalpha()


def search_keyword(pattern: re.Pattern[str], text: str) -> re.Match[str] | None:
    """Find the first match not preceded or followed by a letter.

    Letters are the Unicode letter categories in any script (str.isalpha);
    digits, other numerics such as "²" and punctuation are boundaries.
    """
    pos = 0
    while (match := pattern.search(text, pos)) is not None:
        if not _touches_letter(text, match.start(), match.end()):
            return match
        pos = match.start() + 1
    return None


def collect_text_nodes(
    block: Tag, excluded: Tag | None = None
) -> list[NavigableString]:
    """Collect a block's eligible, non-blank text nodes in document order.

    Text inside `excluded` (the protected hero block) is never collected,
    even when the hero block is nested inside `block`.
    """
    nodes: list[NavigableString] = []
    for node in block.descendants:
        if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
            continue
        if not str(node).strip(_BLANK_CHARS):
            continue
        if excluded is not None and any(p is excluded for p in node.parents):
            continue
        if is_eligible_text_node(node):
            nodes.append(node)
    return nodes


@dataclass
class TextRun:
    """The concatenated text of a block's eligible text nodes.

    Attributes:
        nodes: Contributing text nodes in document order.
        text: Their concatenation, with non-breaking spaces read as spaces.
        lengths: Character length of each node, parallel to nodes.
    """

    nodes: list[NavigableString]
    text: str
    lengths: list[int]

    @classmethod
    def from_block(cls, block: Tag, excluded: Tag | None = None) -> "TextRun":
        nodes = collect_text_nodes(block, excluded)
        values = [str(node).replace(NBSP, " ") for node in nodes]
        return cls(nodes=nodes, text="".join(values), lengths=[len(v) for v in values])

    def locate_start(self, offset: int) -> tuple[int, int] | None:
        """Map a match start offset to (node index, offset within node)."""
        acc = 0
        for idx, length in enumerate(self.lengths):
            if acc <= offset < acc + length:
                return idx, offset - acc
            acc += length
        return None

    def locate_end(self, offset: int) -> tuple[int, int] | None:
        """Map a match end offset (exclusive) to (node index, offset within node)."""
        acc = 0
        for idx, length in enumerate(self.lengths):
            if acc < offset <= acc + length:
                return idx, offset - acc
            acc += length
        return None


@dataclass
class InsertedLink:
    """A link added to the document."""

    url: str
    anchor_text: str
    keyword: str
    block_index: int


@dataclass
class RewriteResult:
    """Outcome of rewriting one document."""

    html: str
    inserted: list[InsertedLink] = field(default_factory=list)
    already_present: list[str] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)


@dataclass
class RewriteContext:
    """Working state of one rewrite, discarded when it finishes."""

    soup: BeautifulSoup
    entries: list[LinkEntry]
    existing: ExistingLinks
    blocks: list[Tag]
    hero: Tag | None = None


def splice_link(run: TextRun, start: int, end: int, url: str) -> str | None:
    """Wrap the run's [start, end) span in an <a> tag, in place.

    The start node is replaced by up to three siblings: the text before the
    match, the link, and the text after it. When the span crosses into a
    later node, the link covers only the start node's tail.

    Returns:
        The anchor text that was linked, or None if the span cannot be
        mapped onto the run.
    """
    start_pos = run.locate_start(start)
    end_pos = run.locate_end(end)
    if start_pos is None or end_pos is None:
        return None

    start_idx, start_offset = start_pos
    end_idx, _ = end_pos
    start_node = run.nodes[start_idx]
    end_node = run.nodes[end_idx]
    parent = start_node.parent
    if parent is None or end_node.parent is None:
        return None

    # Slice the original value so non-breaking spaces survive in the output
    value = str(start_node)
    match_len = end - start
    before = value[:start_offset]
    anchor_text = value[start_offset : start_offset + match_len]
    after = value[start_offset + match_len :]

    link = Tag(name="a", attrs={"href": url})
    link.string = anchor_text

    if before:
        start_node.insert_before(NavigableString(before))
    start_node.insert_before(link)

    if start_idx == end_idx:
        if after:
            start_node.insert_before(NavigableString(after))
        start_node.extract()
    else:
        start_node.extract()
        if after:
            parent.append(NavigableString(after))

    return anchor_text


class LinkInjector:
    """Inserts keyword links into HTML documents."""

    def __init__(self, site_url: str | None = None) -> None:
        """Initialize the injector for a site.

        Args:
            site_url: Site home URL; defaults to the configured site_url.
        """
        self.normalizer = URLNormalizer(site_url or get_settings().site_url)

    def rewrite(
        self,
        html: str,
        mappings: Iterable[LinkMapping | dict[str, Any]],
        meta: PageMeta,
    ) -> RewriteResult:
        """Insert links for a mapping table into a document.

        Args:
            html: The rendered document markup.
            mappings: Rows of the keyword mapping table.
            meta: Metadata of the document.

        Returns:
            RewriteResult whose html is the input string itself when no
            link was inserted.
        """
        if not html:
            return RewriteResult(html=html)

        entries = build_entries(mappings, meta, self.normalizer)
        if not entries:
            return RewriteResult(html=html)

        try:
            soup = BeautifulSoup(html, "html.parser")
        except ParserRejectedMarkup as e:
            logger.warning(
                "Markup rejected by parser, returning it unchanged",
                extra={"error": str(e), "html_length": len(html)},
            )
            return RewriteResult(html=html)

        context = RewriteContext(
            soup=soup,
            entries=entries,
            existing=collect_existing_links(soup, html, self.normalizer),
            blocks=[b for b in soup.find_all(TARGET_BLOCK_TAGS) if isinstance(b, Tag)],
            hero=find_hero_block(soup, meta.is_default_content_type),
        )
        result = RewriteResult(html=html)
        result.already_present = [
            entry.raw_url for entry in mark_present_entries(entries, context.existing)
        ]

        eligible = self._eligible_blocks(context)

        for entry in entries:
            if entry.applied:
                continue
            if context.existing.contains(entry):
                entry.applied = True
                result.already_present.append(entry.raw_url)
                continue

            inserted = self._inject_entry(entry, eligible, context)
            if inserted is None:
                result.unmatched.append(entry.raw_url)
            else:
                result.inserted.append(inserted)

        if result.inserted:
            result.html = str(soup)

        logger.info(
            "Link rewrite complete",
            extra={
                "entries": len(entries),
                "inserted": len(result.inserted),
                "already_present": len(result.already_present),
                "unmatched": len(result.unmatched),
                "own_url": meta.own_url,
            },
        )
        return result

    def _eligible_blocks(self, context: RewriteContext) -> list[tuple[int, Tag]]:
        """Return (index, block) pairs outside the hero block and blocked zones."""
        eligible: list[tuple[int, Tag]] = []
        for idx, block in enumerate(context.blocks):
            if context.hero is not None and block is context.hero:
                continue
            if is_blocked_zone(block):
                continue
            eligible.append((idx, block))
        return eligible

    def _inject_entry(
        self,
        entry: LinkEntry,
        eligible: list[tuple[int, Tag]],
        context: RewriteContext,
    ) -> InsertedLink | None:
        """Insert one entry's link into the first block with a keyword match."""
        patterns: list[tuple[str, re.Pattern[str]]] = []
        for keyword in entry.keywords:
            pattern = compile_keyword_pattern(keyword)
            if pattern is not None:
                patterns.append((keyword, pattern))
        if not patterns:
            return None

        for block_idx, block in eligible:
            # Earlier insertions can add links to a block
            if block.find("a") is not None:
                continue

            run = TextRun.from_block(block, context.hero)
            if not run.text:
                continue

            for keyword, pattern in patterns:
                match = search_keyword(pattern, run.text)
                if match is None:
                    continue

                anchor_text = splice_link(run, match.start(), match.end(), entry.raw_url)
                if anchor_text is None:
                    continue

                entry.applied = True
                context.existing.add(entry.raw_url)
                logger.info(
                    "Keyword link inserted",
                    extra={
                        "url": entry.raw_url,
                        "keyword": keyword,
                        "anchor_text": anchor_text,
                        "block_index": block_idx,
                    },
                )
                return InsertedLink(
                    url=entry.raw_url,
                    anchor_text=anchor_text,
                    keyword=keyword,
                    block_index=block_idx,
                )

        logger.debug(
            "No eligible block matched entry",
            extra={"url": entry.raw_url, "keywords": entry.keywords},
        )
        return None


def rewrite(
    html: str,
    mappings: Iterable[LinkMapping | dict[str, Any]],
    meta: PageMeta,
    site_url: str | None = None,
) -> str:
    """Insert keyword links into a document and return the new markup.

    Convenience function that creates an injector and rewrites a single
    document.
    """
    return LinkInjector(site_url).rewrite(html, mappings, meta).html
