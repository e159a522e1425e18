"""Zone classification rules for link insertion.

Decides whether an element sits in a region that must never receive an
inserted link. Two independent checks walk the ancestor chain:

- Disallowed section: headings, tables, headers/footers, buttons, lists,
  FAQ/accordion/navigation/hero/banner/menu widgets (by class), widget ARIA
  roles and interactive ARIA attributes.
- Template embed: page-builder templates, widget areas and shortcode
  wrappers (by marker attribute or class), <template> and <aside>.

The rules are plain data tables so they can be edited and tested without
touching the traversal.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

# =============================================================================
# DISALLOWED SECTION RULES
# =============================================================================

DISALLOWED_TAGS: frozenset[str] = frozenset(
    {
        "header",
        "footer",
        "table",
        "thead",
        "tfoot",
        "th",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "button",
        "ol",
        "ul",
        "li",
    }
)

DISALLOWED_CLASS_PATTERN = re.compile(
    r"\b(faq|accordion|question|toggle|collapse|panel|ep-title|ep-title-text"
    r"|heading-text|question-title|hero|intro|banner|nav|menu|button)\b",
    re.IGNORECASE,
)

DISALLOWED_ROLES: frozenset[str] = frozenset(
    {"heading", "button", "navigation", "banner", "menu", "presentation", "none"}
)

DISALLOWED_ARIA_ATTRIBUTES: tuple[str, ...] = (
    "aria-controls",
    "aria-expanded",
    "aria-haspopup",
)

# Elements whose text is never document prose
NON_TEXT_TAGS: frozenset[str] = frozenset({"script", "style", "noscript"})

# =============================================================================
# TEMPLATE EMBED RULES
# =============================================================================


@dataclass(frozen=True)
class MarkerAttribute:
    """An attribute that marks a page-builder or shortcode embed.

    Attributes:
        name: Attribute name (lowercase).
        value_contains: If set, the attribute only counts when its
            lowercased value contains this substring.
    """

    name: str
    value_contains: str | None = None

    def matches(self, tag: Tag) -> bool:
        if not tag.has_attr(self.name):
            return False
        if self.value_contains is None:
            return True
        return self.value_contains in _attr_text(tag, self.name)


TEMPLATE_MARKER_ATTRIBUTES: tuple[MarkerAttribute, ...] = (
    MarkerAttribute("data-elementor-post-type", "elementor_library"),
    MarkerAttribute("data-elementor-type", "elementor_library"),
    MarkerAttribute("data-elementor-post-type", "elementskit_content"),
    MarkerAttribute("data-elementskit-widgetarea-key"),
    MarkerAttribute("data-elementskit-widgetarea-index"),
    MarkerAttribute("data-shortcode"),
    MarkerAttribute("data-template"),
    MarkerAttribute("data-wp-editor"),
    MarkerAttribute("data-elementkit-widgetid"),
    MarkerAttribute("data-elementkit-widgetarea-key"),
)

TEMPLATE_CLASS_PATTERN = re.compile(
    r"\b(elementor-widget-shortcode|elementor-shortcode|widget_text|widget_html"
    r"|wpb_wrapper|vc_row|vc_column|shortcode|ti-widget|trustindex"
    r"|wp-block-shortcode|elementor-template-wrap|elementor-widget-template"
    r"|avia_shortcode|elementor-widget-elementskit-advanced-slider"
    r"|elementskit-advanced-slider|ekit-wid-con|ekit-widget-area-container"
    r"|widgetarea_warper|widgetarea_warper_editable|elementskit-widgetarea"
    r"|elementskit-widget-area)\b",
    re.IGNORECASE,
)

TEMPLATE_CLASS_SUBSTRINGS: tuple[str, ...] = ("elementskit-advanced-slider",)

TEMPLATE_TAGS: frozenset[str] = frozenset({"template", "aside"})

# =============================================================================
# ANCESTOR WALK
# =============================================================================


def _attr_text(tag: Tag, name: str) -> str:
    """Return an attribute value as lowercase text ("" when absent).

    Multi-valued attributes such as class come back from BeautifulSoup as
    lists and are joined with spaces.
    """
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        value = " ".join(value)
    return str(value).lower()


def _element_chain(node: PageElement, *, include_self: bool) -> Iterator[Tag]:
    """Yield the element ancestors of a node, nearest first.

    The BeautifulSoup document object itself is never yielded.
    """
    current = node if include_self else node.parent
    while current is not None and not isinstance(current, BeautifulSoup):
        if isinstance(current, Tag):
            yield current
        current = current.parent


def is_disallowed_element(tag: Tag) -> bool:
    """Check one element against the disallowed-section tables."""
    if (tag.name or "").lower() in DISALLOWED_TAGS:
        return True
    class_attr = _attr_text(tag, "class")
    if class_attr and DISALLOWED_CLASS_PATTERN.search(class_attr):
        return True
    if _attr_text(tag, "role") in DISALLOWED_ROLES:
        return True
    return any(tag.has_attr(attr) for attr in DISALLOWED_ARIA_ATTRIBUTES)


def is_template_element(tag: Tag) -> bool:
    """Check one element against the template-embed tables."""
    if any(marker.matches(tag) for marker in TEMPLATE_MARKER_ATTRIBUTES):
        return True
    class_attr = _attr_text(tag, "class")
    if class_attr:
        if TEMPLATE_CLASS_PATTERN.search(class_attr):
            return True
        if any(fragment in class_attr for fragment in TEMPLATE_CLASS_SUBSTRINGS):
            return True
    return (tag.name or "").lower() in TEMPLATE_TAGS


def is_inside_disallowed_section(node: PageElement) -> bool:
    """Check whether any ancestor of a node is a disallowed section.

    The node itself is not inspected, only its ancestors.
    """
    return any(
        is_disallowed_element(tag) for tag in _element_chain(node, include_self=False)
    )


def is_inside_template_embed(node: PageElement) -> bool:
    """Check whether a node, or any of its ancestors, is a template embed."""
    return any(
        is_template_element(tag) for tag in _element_chain(node, include_self=True)
    )


def is_excluded_text_ancestor(tag: Tag) -> bool:
    """Check whether an ancestor disqualifies the text nodes below it."""
    name = (tag.name or "").lower()
    if name == "a" or name in DISALLOWED_TAGS or name in NON_TEXT_TAGS:
        return True
    if is_template_element(tag):
        return True
    class_attr = _attr_text(tag, "class")
    if class_attr and DISALLOWED_CLASS_PATTERN.search(class_attr):
        return True
    return _attr_text(tag, "role") in DISALLOWED_ROLES


def is_eligible_text_node(node: NavigableString) -> bool:
    """Check whether a text node may contribute to a block's text run."""
    return not any(
        is_excluded_text_ancestor(tag)
        for tag in _element_chain(node, include_self=False)
    )


def is_blocked_zone(node: PageElement) -> bool:
    """Check both zone predicates at once."""
    return is_inside_template_embed(node) or is_inside_disallowed_section(node)
