import json
import os
import time
from typing import Any, Dict, Optional, Union

import requests

from PSC.services.shared.errors import ConfigurationError
from PSC.services.shared.logger import SearchLogger
from PSC.services.shared.settings import DEFAULT_BRAVE_BASE_URL, get_settings

from .api_key_validator import validate_brave_api_key
from .base import DecodeError, SearchProvider, UpstreamError
from .envelopes import decode_envelope
from .pacer import Pacer, get_default_pacer
from .schema import EndpointDescriptor, SearchRequest, SearchResults


# Registry descriptors use the public API root; get_endpoint re-roots them
# at the configured brave.base_url.
BRAVE_API_ROOT = DEFAULT_BRAVE_BASE_URL

WEB_SEARCH = EndpointDescriptor(
    key="web",
    display_name="Brave web search",
    description="Search the web with Brave",
    base_url=f"{BRAVE_API_ROOT}/web/search",
)
NEWS_SEARCH = EndpointDescriptor(
    key="news",
    display_name="Brave news search",
    description="Search for news with Brave",
    base_url=f"{BRAVE_API_ROOT}/news/search",
)
IMAGE_SEARCH = EndpointDescriptor(
    key="images",
    display_name="Brave image search",
    description="Search for images with Brave",
    base_url=f"{BRAVE_API_ROOT}/images/search",
)
VIDEO_SEARCH = EndpointDescriptor(
    key="videos",
    display_name="Brave video search",
    description="Search for videos with Brave",
    base_url=f"{BRAVE_API_ROOT}/videos/search",
)

ENDPOINTS: Dict[str, EndpointDescriptor] = {
    endpoint.key: endpoint
    for endpoint in (WEB_SEARCH, NEWS_SEARCH, IMAGE_SEARCH, VIDEO_SEARCH)
}


def get_endpoint(key: str, api_root: Optional[str] = None) -> EndpointDescriptor:
    """Look up an endpoint descriptor rooted at ``api_root``.

    ``api_root`` defaults to the ``brave.base_url`` setting (BRAVE_BASE_URL
    or config.yaml).
    """
    endpoint = ENDPOINTS.get((key or "").strip().lower())
    if endpoint is None:
        raise ConfigurationError(
            f"Unknown search endpoint '{key}'. Use one of: {', '.join(ENDPOINTS)}"
        )
    root = (api_root or get_settings().brave.base_url).rstrip("/")
    if root != BRAVE_API_ROOT:
        path = endpoint.base_url[len(BRAVE_API_ROOT):]
        endpoint = endpoint.with_base_url(root + path)
    return endpoint


class BraveSearchClient(SearchProvider):
    """Search client for one Brave endpoint variant.

    Notes on configuration:
    - Endpoint:
        * A descriptor, or an endpoint key resolved with get_endpoint at the
          configured brave.base_url.
    - API key:
        * Static subscription token sent as the 'X-Subscription-Token' header.
        * Passed explicitly or read from the BRAVE_API_KEY environment variable.
    - Pacing:
        * Every request goes through ``pacer``. Clients built for different
          endpoints must share one Pacer so the provider's per-second budget
          is respected across all of them (the default pacer is process-wide).
    - Latency / timeouts:
        * `timeout_seconds` is a client-side timeout for the HTTP request only;
          waiting for a pacing slot is unbounded.
    """

    def __init__(
        self,
        endpoint: Union[EndpointDescriptor, str],
        api_key: Optional[str] = None,
        pacer: Optional[Pacer] = None,
        session: Optional[requests.Session] = None,
        timeout_seconds: float = 10.0,
        run_id: Optional[str] = None,
        validate_key: bool = True,
    ) -> None:
        if isinstance(endpoint, str):
            endpoint = get_endpoint(endpoint)
        self.endpoint = endpoint
        self.api_key = api_key or os.getenv("BRAVE_API_KEY")
        self.pacer = pacer or get_default_pacer()
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self.run_id = run_id
        self.logger = SearchLogger("search", run_id=run_id)

        if validate_key:
            validate_brave_api_key(self.api_key, raise_on_invalid=True)

    @property
    def name(self) -> str:
        return self.endpoint.display_name

    @property
    def description(self) -> str:
        return self.endpoint.description

    def health_check(self) -> bool:
        """Return True if the client has a usable API key."""
        is_valid, _ = validate_brave_api_key(self.api_key or "", raise_on_invalid=False)
        return is_valid

    def search(self, request: SearchRequest) -> SearchResults:
        body = self._fetch(request, mode="decoded")
        try:
            envelope = decode_envelope(body)
        except DecodeError as e:
            self.logger.log("search_failed", {
                "endpoint": self.endpoint.key,
                "query": request.query,
                "error": str(e),
                "type": type(e).__name__,
                **e.metadata,
            })
            raise
        results = envelope.to_search_results(request, correlation_id=self.run_id)

        self.logger.log("search_decoded", {
            "endpoint": self.endpoint.key,
            "envelope": type(envelope).__name__,
            "result_count": len(results.results),
        })
        return results

    def search_raw(self, request: SearchRequest) -> str:
        return self._fetch(request, mode="raw")

    def search_images(self, request: SearchRequest) -> str:
        """Image results as the raw provider body, for free-text consumption by a model."""
        return self.search_raw(request)

    def tool_definition(self) -> Dict[str, Any]:
        """Function-calling description of this endpoint for an LLM tool loop."""
        return {
            "name": f"brave_{self.endpoint.key}_search",
            "description": self.endpoint.description,
            "parameters": SearchRequest.model_json_schema(),
        }

    def _fetch(self, request: SearchRequest, mode: str) -> str:
        self.logger.log("search_request", {
            "endpoint": self.endpoint.key,
            "mode": mode,
            "query": request.query,
            "count": request.count,
            "offset": request.offset,
        })

        params = {
            "q": request.query,
            "count": request.count,
            "offset": request.offset,
        }
        headers = {
            "X-Subscription-Token": self.api_key,
            "Accept": "application/json",
        }

        def call() -> requests.Response:
            return self.session.get(
                self.endpoint.base_url,
                params=params,
                headers=headers,
                timeout=self.timeout_seconds,
            )

        start_time = time.time()
        try:
            response = self.pacer.pace(call)
            body = self._check_response(response)
        except Exception as e:
            self.logger.log("search_failed", {
                "endpoint": self.endpoint.key,
                "query": request.query,
                "error": str(e),
                "type": type(e).__name__,
            })
            raise

        self.logger.log("search_completed", {
            "endpoint": self.endpoint.key,
            "status": response.status_code,
            "bytes": len(body),
            "latency_ms": round((time.time() - start_time) * 1000.0, 2),
        })
        return body

    def _check_response(self, response: requests.Response) -> str:
        status = response.status_code
        body = response.text or ""

        if not (200 <= status < 300):
            raise UpstreamError(
                f"{self.endpoint.display_name} returned status {status}: {_error_detail(body)}",
                status_code=status,
                run_id=self.run_id,
            )

        if not body.strip():
            raise UpstreamError(
                f"{self.endpoint.display_name} returned no response body",
                status_code=status,
                empty_body=True,
                run_id=self.run_id,
            )

        return body


def _error_detail(body: str) -> str:
    """Best-effort extraction of the provider's error message."""
    if not body.strip():
        return ""
    try:
        payload = json.loads(body)
    except ValueError:
        return body[:200]

    if isinstance(payload, dict):
        # Brave surfaces errors as {"type": "ErrorResponse", "error": {"detail": ...}}
        error_obj = payload.get("error")
        if isinstance(error_obj, dict):
            return str(error_obj.get("detail") or error_obj.get("code") or "")
        if error_obj:
            return str(error_obj)
        return str(payload.get("message") or "")
    return ""
