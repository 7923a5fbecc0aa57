from datetime import datetime, timezone
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    """One search call: query plus page size and pagination offset."""
    model_config = ConfigDict(frozen=True)

    query: str = Field(..., min_length=1, description="The search query")
    count: int = Field(10, ge=1, description="Number of results to return per page")
    offset: int = Field(
        0,
        ge=0,
        description="Offset for pagination, defaults to 0, goes up by 1 for page size",
    )


class SearchResult(BaseModel):
    """Normalized data model for a single search hit, whatever endpoint produced it."""
    model_config = ConfigDict(frozen=True)

    title: str = Field(..., description="The title of the result")
    url: str = Field(..., description="The direct link to the result")
    description: Optional[str] = Field(None, description="Summary text, absent for some media results")


class SearchResults(BaseModel):
    """Container for the full search operation response."""
    model_config = ConfigDict(frozen=True)

    request: SearchRequest
    original_query: str
    results: Tuple[SearchResult, ...] = ()
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    correlation_id: Optional[str] = None

    @property
    def name(self) -> str:
        return f"Brave search results for query: {self.original_query}"


class EndpointDescriptor(BaseModel):
    """Static configuration of one endpoint variant."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Short identifier, e.g. 'web' or 'news'")
    display_name: str
    description: str
    base_url: str

    def with_base_url(self, base_url: str) -> "EndpointDescriptor":
        return self.model_copy(update={"base_url": base_url})
