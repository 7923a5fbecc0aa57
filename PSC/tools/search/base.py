import abc
from typing import Any, Dict, Optional

from PSC.services.shared.errors import PSCError

from .schema import SearchRequest, SearchResults


class SearchProvider(abc.ABC):
    """Abstract Base Class for Search Providers.

    Enforces a consistent interface regardless of which endpoint variant
    (web, news, images, videos) sits behind the client.
    """

    @abc.abstractmethod
    def search(self, request: SearchRequest) -> SearchResults:
        """Execute a search request and return normalized results.

        Args:
            request: Query string plus page size and pagination offset.

        Returns:
            SearchResults: Normalized hits in provider order.

        Raises:
            UpstreamError: Non-success status or empty body.
            DecodeError: Body does not match any known envelope shape.
        """
        pass

    @abc.abstractmethod
    def search_raw(self, request: SearchRequest) -> str:
        """Execute a search request and return the response body verbatim."""
        pass

    @abc.abstractmethod
    def health_check(self) -> bool:
        """Verify provider configuration."""
        pass


class SearchError(PSCError):
    """Base exception for search tool failures."""

    def __init__(
        self,
        message: str,
        run_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, run_id=run_id, service="search", metadata=metadata)


class UpstreamError(SearchError):
    """The provider answered with a non-success status or an empty body."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        empty_body: bool = False,
        run_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, run_id=run_id, metadata=metadata)
        self.status_code = status_code
        self.empty_body = empty_body


class DecodeError(SearchError):
    """The body was present but unparseable or of an unrecognized shape."""
    pass
