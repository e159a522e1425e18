"""Pydantic schemas for the link manager API."""

from link_manager.schemas.link_mapping import (
    InsertedLinkResponse,
    LinkMapping,
    MappingsValidateRequest,
    MappingsValidateResponse,
    PageInfo,
    PageMeta,
    RequestInfo,
    RewriteRequest,
    RewriteResponse,
)

__all__ = [
    "InsertedLinkResponse",
    "LinkMapping",
    "MappingsValidateRequest",
    "MappingsValidateResponse",
    "PageInfo",
    "PageMeta",
    "RequestInfo",
    "RewriteRequest",
    "RewriteResponse",
]
