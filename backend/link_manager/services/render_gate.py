"""Decides whether a rendered document gets keyword links at all.

The rewrite only runs for single-page front-end views of the configured
content types; admin screens, REST responses and archive listings are
passed through untouched.
"""

from dataclasses import dataclass

from link_manager.core.config import Settings


@dataclass(frozen=True)
class RenderContext:
    """The request a document is rendered for."""

    post_type: str
    is_admin: bool = False
    is_ajax: bool = False
    is_rest: bool = False
    is_singular: bool = True


def should_rewrite(context: RenderContext, settings: Settings) -> bool:
    """Check whether links should be inserted for this render."""
    if context.is_admin and not context.is_ajax:
        return False
    if context.is_rest:
        return False
    if not context.is_singular:
        return False
    if settings.apply_post_types and context.post_type not in settings.apply_post_types:
        return False
    return True


def is_default_content_type(post_type: str, settings: Settings) -> bool:
    """Check whether a content type is the default (lead paragraph not protected)."""
    return post_type == settings.default_post_type
