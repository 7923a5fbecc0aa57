"""Provider response envelopes and shape-based decoding.

Brave does not tag its responses with a type field. Web search nests hits
under ``web.results``; news, images and videos return a flat top-level
``results`` list. ``decode_envelope`` tries each known shape in a fixed
priority order and keeps the first one that validates.
"""

import json
from typing import List, Optional, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from .base import DecodeError
from .schema import SearchRequest, SearchResult, SearchResults


class QueryInfo(BaseModel):
    """The provider's echo of the query it actually ran."""
    original: str


class WebResults(BaseModel):
    results: List[SearchResult]


class WebSearchEnvelope(BaseModel):
    """``{"web": {"results": [...]}, "query": {"original": ...}}``"""
    web: WebResults
    query: QueryInfo

    def to_search_results(
        self, request: SearchRequest, correlation_id: Optional[str] = None
    ) -> SearchResults:
        return SearchResults(
            request=request,
            original_query=self.query.original,
            results=tuple(self.web.results),
            correlation_id=correlation_id,
        )


class FlatSearchEnvelope(BaseModel):
    """``{"results": [...], "query": {"original": ...}}`` (news, images, videos)."""
    results: List[SearchResult]
    query: QueryInfo

    def to_search_results(
        self, request: SearchRequest, correlation_id: Optional[str] = None
    ) -> SearchResults:
        return SearchResults(
            request=request,
            original_query=self.query.original,
            results=tuple(self.results),
            correlation_id=correlation_id,
        )


SearchEnvelope = Union[WebSearchEnvelope, FlatSearchEnvelope]

# Priority order matters: a body carrying both shapes decodes as web.
ENVELOPE_VARIANTS: Tuple[Type[BaseModel], ...] = (WebSearchEnvelope, FlatSearchEnvelope)


def decode_envelope(body: str) -> SearchEnvelope:
    """Parse a response body into the first envelope variant it matches.

    Raises:
        DecodeError: Body is not JSON, not an object, or matches no variant.
    """
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise DecodeError("Search provider returned invalid JSON.") from e

    if not isinstance(data, dict):
        raise DecodeError(
            f"Search provider returned a JSON {type(data).__name__}, expected an object."
        )

    mismatches = {}
    for variant in ENVELOPE_VARIANTS:
        try:
            return variant.model_validate(data)
        except ValidationError as e:
            mismatches[variant.__name__] = e.error_count()

    raise DecodeError(
        "Response matches no known envelope shape.",
        metadata={"top_level_keys": sorted(data.keys()), "mismatches": mismatches},
    )
