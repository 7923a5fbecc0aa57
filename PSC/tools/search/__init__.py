from .schema import EndpointDescriptor, SearchRequest, SearchResult, SearchResults
from .base import SearchProvider, SearchError, UpstreamError, DecodeError
from .envelopes import FlatSearchEnvelope, WebSearchEnvelope, decode_envelope
from .pacer import Pacer, get_default_pacer
from .brave import (
    BraveSearchClient,
    ENDPOINTS,
    IMAGE_SEARCH,
    NEWS_SEARCH,
    VIDEO_SEARCH,
    WEB_SEARCH,
    get_endpoint,
)
from .factory import SearchFactory
from .multi import MultiEndpointSearch
from .simulated import SimulatedBraveSession

__all__ = [
    "EndpointDescriptor",
    "SearchRequest",
    "SearchResult",
    "SearchResults",
    "SearchProvider",
    "SearchError",
    "UpstreamError",
    "DecodeError",
    "FlatSearchEnvelope",
    "WebSearchEnvelope",
    "decode_envelope",
    "Pacer",
    "get_default_pacer",
    "BraveSearchClient",
    "ENDPOINTS",
    "WEB_SEARCH",
    "NEWS_SEARCH",
    "IMAGE_SEARCH",
    "VIDEO_SEARCH",
    "get_endpoint",
    "SearchFactory",
    "MultiEndpointSearch",
    "SimulatedBraveSession",
]
