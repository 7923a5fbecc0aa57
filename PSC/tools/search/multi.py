import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Mapping, Optional

from .base import SearchError, SearchProvider
from .schema import SearchRequest, SearchResult, SearchResults

logger = logging.getLogger(__name__)


class MultiEndpointSearch:
    """Runs one request against several endpoint clients and merges the hits.

    Requests are submitted in parallel, but clients sharing a Pacer are still
    admitted one at a time, so fanning out over N endpoints takes at least
    (N - 1) pacing intervals.

    Example:
        clients = SearchFactory.build_clients(endpoints=["web", "news"])
        multi = MultiEndpointSearch(clients)
        results = multi.search(SearchRequest(query="quantum computing"))
    """

    def __init__(
        self,
        clients: Mapping[str, SearchProvider],
        dedup_by_url: bool = True,
        max_workers: Optional[int] = None,
    ) -> None:
        """Initialize multi-endpoint search.

        Args:
            clients: Endpoint key to client. Iteration order is the merge order.
            dedup_by_url: If True, keep only the first hit for each URL.
            max_workers: Thread pool size, defaults to one per client.
        """
        if not clients:
            raise ValueError("MultiEndpointSearch requires at least one client")

        self.clients = dict(clients)
        self.dedup_by_url = dedup_by_url
        self.max_workers = max_workers or len(self.clients)

    def health_check(self) -> bool:
        """Return True if at least one client is healthy."""
        return any(client.health_check() for client in self.clients.values())

    def search_all(self, request: SearchRequest) -> Dict[str, SearchResults]:
        """Search every endpoint; results keyed by endpoint, failed endpoints omitted.

        Raises:
            SearchError: If every endpoint failed.
        """
        responses: Dict[str, SearchResults] = {}
        endpoint_errors: Dict[str, str] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                key: executor.submit(client.search, request)
                for key, client in self.clients.items()
            }

            # Collected in client order, not completion order
            for key, future in futures.items():
                try:
                    responses[key] = future.result()
                except Exception as e:
                    logger.warning(f"Endpoint '{key}' failed for query {request.query!r}: {e}")
                    endpoint_errors[key] = f"{type(e).__name__}: {e}"

        if not responses:
            error_summary = "; ".join(f"{key}: {err}" for key, err in endpoint_errors.items())
            raise SearchError(
                f"All endpoints failed: {error_summary}",
                metadata={"errors": endpoint_errors},
            )

        return responses

    def search(self, request: SearchRequest) -> SearchResults:
        """Search every endpoint and merge the hits into one SearchResults."""
        responses = self.search_all(request)
        first = next(iter(responses.values()))

        merged: List[SearchResult] = []
        for response in responses.values():
            merged.extend(response.results)

        return SearchResults(
            request=request,
            original_query=first.original_query,
            results=tuple(self._deduplicate_results(merged)),
            correlation_id=first.correlation_id,
        )

    def _deduplicate_results(self, results: List[SearchResult]) -> List[SearchResult]:
        if not self.dedup_by_url:
            return results

        seen_urls = set()
        deduplicated: List[SearchResult] = []
        for result in results:
            if result.url in seen_urls:
                continue
            seen_urls.add(result.url)
            deduplicated.append(result)
        return deduplicated
