"""Keyword link API endpoints.

- POST /api/v1/links/rewrite - Insert keyword links into a rendered page
- POST /api/v1/links/mappings/validate - Sanitize a mapping table

Error responses are structured: {"error": str, "code": str, "request_id": str}
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from link_manager.core.config import Settings, get_settings
from link_manager.core.errors import error_response, get_request_id
from link_manager.core.logging import get_logger
from link_manager.schemas.link_mapping import (
    InsertedLinkResponse,
    LinkMapping,
    MappingsValidateRequest,
    MappingsValidateResponse,
    PageMeta,
    RewriteRequest,
    RewriteResponse,
)
from link_manager.services.link_injection import LinkInjector
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

logger = get_logger(__name__)

router = APIRouter(prefix="/links", tags=["Links"])


def _mapping_error_response(request: Request, error: MappingTableError) -> JSONResponse:
    return error_response(
        request, status.HTTP_400_BAD_REQUEST, str(error), "INVALID_MAPPINGS"
    )


@router.post(
    "/rewrite",
    response_model=RewriteResponse,
    summary="Insert keyword links into a rendered page",
    responses={
        400: {
            "description": "Configured mapping table is invalid",
            "content": {
                "application/json": {
                    "example": {
                        "error": "Mapping table must be a JSON array",
                        "code": "INVALID_MAPPINGS",
                        "request_id": "<request_id>",
                    }
                }
            },
        },
    },
)
async def rewrite_links(
    request: Request,
    data: RewriteRequest,
    settings: Settings = Depends(get_settings),
) -> RewriteResponse | JSONResponse:
    """Insert links for the mapping table into one page.

    Requests that are gated out (admin views, REST, archives, content types
    outside APPLY_POST_TYPES) get the HTML back unchanged with applied=false.
    """
    request_id = get_request_id(request)

    context = RenderContext(
        post_type=data.page.post_type,
        is_admin=data.request.is_admin,
        is_ajax=data.request.is_ajax,
        is_rest=data.request.is_rest,
        is_singular=data.request.is_singular,
    )
    if not should_rewrite(context, settings):
        logger.debug(
            "Rewrite gated out",
            extra={"request_id": request_id, "post_type": context.post_type},
        )
        return RewriteResponse(html=data.html, applied=False)

    mappings: list[LinkMapping]
    if data.mappings is not None:
        mappings = data.mappings
    else:
        try:
            mappings = load_configured_mappings(settings)
        except MappingTableError as e:
            logger.warning(
                "Configured mapping table rejected",
                extra={"request_id": request_id, "error": str(e)},
            )
            return _mapping_error_response(request, e)

    meta = PageMeta(
        own_url=data.page.url,
        title=data.page.title,
        slug=data.page.slug,
        is_default_content_type=is_default_content_type(data.page.post_type, settings),
    )

    result = LinkInjector(settings.site_url).rewrite(data.html, mappings, meta)

    logger.info(
        "Page rewritten",
        extra={
            "request_id": request_id,
            "page_url": data.page.url,
            "inserted": len(result.inserted),
        },
    )

    return RewriteResponse(
        html=result.html,
        applied=True,
        inserted=[
            InsertedLinkResponse(
                url=link.url,
                anchor_text=link.anchor_text,
                keyword=link.keyword,
                block_index=link.block_index,
            )
            for link in result.inserted
        ],
        already_present=result.already_present,
        unmatched=result.unmatched,
    )


@router.post(
    "/mappings/validate",
    response_model=MappingsValidateResponse,
    summary="Sanitize a keyword mapping table",
)
async def validate_mappings(
    request: Request,
    data: MappingsValidateRequest,
) -> MappingsValidateResponse | JSONResponse:
    """Parse a mapping table, dropping incomplete rows."""
    request_id = get_request_id(request)
    try:
        mappings = parse_mappings_json(data.mappings_json)
    except MappingTableError as e:
        return _mapping_error_response(request, e)

    logger.info(
        "Mapping table validated",
        extra={"request_id": request_id, "mapping_count": len(mappings)},
    )

    return MappingsValidateResponse(
        mappings=mappings,
        count=len(mappings),
        mappings_json=dump_mappings_json(mappings),
    )
