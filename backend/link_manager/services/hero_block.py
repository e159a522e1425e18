"""Hero block location.

Pages and custom content types open with a lead paragraph that must stay
free of inserted links. Blog posts (the default content type) have no
protected block.
"""

from bs4 import BeautifulSoup, Tag

from link_manager.core.logging import get_logger
from link_manager.services.zone_classifier import is_blocked_zone

logger = get_logger(__name__)

HERO_FALLBACK_TAGS: frozenset[str] = frozenset({"p", "div"})


def find_hero_block(soup: BeautifulSoup, is_default_content_type: bool) -> Tag | None:
    """Locate the block exempt from link insertion.

    The first <p> in document order is the hero block when it lies outside
    every disallowed section and template embed. Otherwise the first
    <p> or <div> directly under <body> (or at the root of a fragment)
    passing both checks is used.

    Args:
        soup: The parsed document.
        is_default_content_type: True for the default content type, which
            has no hero block.

    Returns:
        The protected block, or None.
    """
    if is_default_content_type:
        return None

    first_paragraph = soup.find("p")
    if isinstance(first_paragraph, Tag) and not is_blocked_zone(first_paragraph):
        return first_paragraph

    # Full documents keep their blocks under <body>; fragments at the root
    container = soup.body if soup.body is not None else soup
    for child in container.children:
        if not isinstance(child, Tag):
            continue
        if (child.name or "").lower() not in HERO_FALLBACK_TAGS:
            continue
        if not is_blocked_zone(child):
            logger.debug(
                "Hero block taken from top-level fallback",
                extra={"tag": child.name},
            )
            return child

    return None
