"""Link insertion services."""

from link_manager.services.link_injection import (
    InsertedLink,
    LinkInjector,
    RewriteResult,
    rewrite,
)
from link_manager.services.mapping_table import (
    MappingTableError,
    dump_mappings_json,
    load_configured_mappings,
    parse_mappings_json,
)
from link_manager.services.render_gate import (
    RenderContext,
    is_default_content_type,
    should_rewrite,
)

__all__ = [
    "InsertedLink",
    "LinkInjector",
    "MappingTableError",
    "RenderContext",
    "RewriteResult",
    "dump_mappings_json",
    "is_default_content_type",
    "load_configured_mappings",
    "parse_mappings_json",
    "rewrite",
    "should_rewrite",
]
