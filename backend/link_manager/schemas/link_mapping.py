"""Pydantic v2 schemas for keyword mappings and the rewrite API.

Schemas:
- LinkMapping: One row of the keyword mapping table
- PageMeta: Metadata of the document being rewritten
- PageInfo / RequestInfo: Page and request details sent by the render pipeline
- RewriteRequest / RewriteResponse: Rewrite a document
- MappingsValidateRequest / MappingsValidateResponse: Sanitize a mapping table
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# MAPPING TABLE / PAGE METADATA
# =============================================================================


class LinkMapping(BaseModel):
    """A keyword set and the URL its first match should link to.

    Rows may carry blank keywords or an empty URL; the entry builder drops
    them rather than rejecting the whole table.
    """

    keywords: list[str] = Field(
        default_factory=list,
        description="Keywords or phrases that should link to the URL",
    )
    url: str = Field("", description="Link destination")

    @field_validator("keywords", mode="before")
    @classmethod
    def coerce_keywords(cls, v: Any) -> Any:
        """Accept a single keyword in place of a list.

        Scalars are stringified; nested objects, lists and nulls are skipped.
        """
        if v is None:
            return []
        if not isinstance(v, list):
            v = [v]
        return [
            str(item)
            for item in v
            if item is not None and not isinstance(item, (dict, list))
        ]


class PageMeta(BaseModel):
    """Metadata of the document being rewritten."""

    own_url: str = Field("", description="Permalink of the document itself")
    title: str = Field("", description="Document title (may contain markup)")
    slug: str = Field("", description="Document slug")
    is_default_content_type: bool = Field(
        True,
        description="True for blog posts; False protects the lead paragraph",
    )


# =============================================================================
# REWRITE REQUEST / RESPONSE
# =============================================================================


class PageInfo(BaseModel):
    """Page details supplied by the render pipeline."""

    url: str = Field("", description="Permalink of the page")
    title: str = Field("", description="Page title")
    slug: str = Field("", description="Page slug")
    post_type: str = Field("post", description="Content type of the page")


class RequestInfo(BaseModel):
    """Describes the request the page is being rendered for."""

    is_admin: bool = Field(False, description="Rendered inside the admin area")
    is_ajax: bool = Field(False, description="Rendered for an AJAX request")
    is_rest: bool = Field(False, description="Rendered for a REST API request")
    is_singular: bool = Field(True, description="Rendered as a single-page view")


class RewriteRequest(BaseModel):
    """Request to insert links into a rendered document."""

    html: str = Field(..., description="Rendered document markup")
    mappings: list[LinkMapping] | None = Field(
        None,
        description="Mapping table to apply; the configured table is used when omitted",
    )
    page: PageInfo = Field(default_factory=PageInfo)
    request: RequestInfo = Field(default_factory=RequestInfo)


class InsertedLinkResponse(BaseModel):
    """A link inserted by the rewrite."""

    url: str
    anchor_text: str
    keyword: str
    block_index: int = Field(..., description="Index of the block among <p>/<div> elements")


class RewriteResponse(BaseModel):
    """Result of a rewrite."""

    html: str
    applied: bool = Field(..., description="False when the request was gated out")
    inserted: list[InsertedLinkResponse] = Field(default_factory=list)
    already_present: list[str] = Field(
        default_factory=list,
        description="URLs skipped because the page already links to them",
    )
    unmatched: list[str] = Field(
        default_factory=list,
        description="URLs whose keywords matched no eligible block",
    )


# =============================================================================
# MAPPING TABLE VALIDATION
# =============================================================================


class MappingsValidateRequest(BaseModel):
    """Raw mapping table to sanitize."""

    mappings_json: str = Field(..., description="JSON array of {keywords, url} objects")


class MappingsValidateResponse(BaseModel):
    """Sanitized mapping table."""

    mappings: list[LinkMapping]
    count: int
    mappings_json: str = Field(..., description="Sanitized table serialized as JSON")
