"""Keyword mapping table parsing.

The mapping table is a JSON array of {"keywords": [...], "url": "..."}
objects maintained by site editors. Parsing is lenient per row (incomplete
rows are dropped) but strict about the document as a whole: text that is
not a JSON array is rejected so a typo never silently clears the table.
"""

import json
import re
from pathlib import Path
from typing import Any

from link_manager.core.config import Settings
from link_manager.core.logging import get_logger
from link_manager.schemas.link_mapping import LinkMapping

logger = get_logger(__name__)

_INVALID_URL_CHARS = re.compile(r"[\s\x00-\x1f\x7f]")


class MappingTableError(Exception):
    """Raised when a mapping table is not a JSON array."""

    pass


def _sanitize_keywords(value: Any) -> list[str]:
    if value is None:
        return []
    items = value if isinstance(value, list) else [value]
    keywords: list[str] = []
    for item in items:
        if isinstance(item, (dict, list)) or item is None:
            continue
        text = str(item).strip()
        if text:
            keywords.append(text)
    return keywords


def _sanitize_url(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    url = value.strip()
    if _INVALID_URL_CHARS.search(url):
        return ""
    return url


def parse_mappings_json(raw: str | None) -> list[LinkMapping]:
    """Parse and sanitize a JSON mapping table.

    Args:
        raw: JSON text of the table.

    Returns:
        Sanitized mappings; rows without keywords or URL are dropped.

    Raises:
        MappingTableError: If the text is not valid JSON or not an array.
    """
    if raw is None or not raw.strip():
        return []

    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(
            "Mapping table is not valid JSON",
            extra={"error": str(e), "position": e.pos},
        )
        raise MappingTableError(f"Invalid JSON format: {e.msg}") from e

    if not isinstance(decoded, list):
        logger.warning(
            "Mapping table is not a JSON array",
            extra={"type": type(decoded).__name__},
        )
        raise MappingTableError("Mapping table must be a JSON array")

    mappings: list[LinkMapping] = []
    for idx, row in enumerate(decoded):
        if not isinstance(row, dict):
            logger.debug("Dropping non-object mapping row", extra={"row": idx})
            continue
        keywords = _sanitize_keywords(row.get("keywords"))
        url = _sanitize_url(row.get("url"))
        if not keywords or not url:
            logger.debug("Dropping incomplete mapping row", extra={"row": idx})
            continue
        mappings.append(LinkMapping(keywords=keywords, url=url))

    return mappings


def dump_mappings_json(mappings: list[LinkMapping]) -> str:
    """Serialize mappings back to compact JSON."""
    return json.dumps(
        [m.model_dump() for m in mappings],
        ensure_ascii=False,
        separators=(",", ":"),
    )


def load_configured_mappings(settings: Settings) -> list[LinkMapping]:
    """Load the site's mapping table from settings.

    Inline JSON (MAPPINGS_JSON) takes precedence over a file
    (MAPPINGS_FILE). Returns an empty table when neither is set.

    Raises:
        MappingTableError: If the configured table is not a JSON array or
            the file cannot be read.
    """
    if settings.mappings_json:
        return parse_mappings_json(settings.mappings_json)

    if settings.mappings_file:
        path = Path(settings.mappings_file)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(
                "Mapping table file could not be read",
                extra={"path": str(path), "error": str(e)},
            )
            raise MappingTableError(f"Cannot read mapping file: {path}") from e
        return parse_mappings_json(raw)

    return []
