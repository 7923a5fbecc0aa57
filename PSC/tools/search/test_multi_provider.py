import unittest
from unittest.mock import MagicMock

import requests

from PSC.tools.search import (
    MultiEndpointSearch,
    Pacer,
    SearchError,
    SearchFactory,
    SearchRequest,
    SearchResult,
    SearchResults,
    UpstreamError,
)


def _results(query, hits, correlation_id=None):
    return SearchResults(
        request=SearchRequest(query=query),
        original_query=query,
        results=tuple(hits),
        correlation_id=correlation_id,
    )


def _client(results=None, error=None):
    client = MagicMock()
    if error is not None:
        client.search.side_effect = error
    else:
        client.search.return_value = results
    return client


class TestMultiEndpointSearch(unittest.TestCase):

    def test_combines_results_in_client_order(self):
        """Hits from every endpoint are merged, web first then news."""
        web = _client(_results("test query", [
            SearchResult(title="Web 1", url="https://example.com/1", description="Snippet 1"),
            SearchResult(title="Web 2", url="https://example.com/2", description="Snippet 2"),
        ], correlation_id="run-1"))
        news = _client(_results("test query", [
            SearchResult(title="News 1", url="https://news.example.com/1"),
        ]))

        multi = MultiEndpointSearch({"web": web, "news": news})
        response = multi.search(SearchRequest(query="test query"))

        self.assertEqual([hit.title for hit in response.results], ["Web 1", "Web 2", "News 1"])
        self.assertEqual(response.original_query, "test query")
        self.assertEqual(response.correlation_id, "run-1")

    def test_deduplicates_urls(self):
        web = _client(_results("q", [SearchResult(title="Result 1", url="https://example.com/same")]))
        news = _client(_results("q", [SearchResult(title="Result 2", url="https://example.com/same")]))

        response = MultiEndpointSearch({"web": web, "news": news}).search(SearchRequest(query="q"))

        self.assertEqual(len(response.results), 1)
        self.assertEqual(response.results[0].title, "Result 1")

    def test_dedup_can_be_disabled(self):
        web = _client(_results("q", [SearchResult(title="Result 1", url="https://example.com/same")]))
        news = _client(_results("q", [SearchResult(title="Result 2", url="https://example.com/same")]))

        multi = MultiEndpointSearch({"web": web, "news": news}, dedup_by_url=False)

        self.assertEqual(len(multi.search(SearchRequest(query="q")).results), 2)

    def test_failed_endpoint_is_skipped(self):
        web = _client(error=UpstreamError("boom", status_code=500))
        news = _client(_results("q", [SearchResult(title="News", url="https://news.example.com")]))

        multi = MultiEndpointSearch({"web": web, "news": news})
        responses = multi.search_all(SearchRequest(query="q"))

        self.assertEqual(list(responses), ["news"])

    def test_all_endpoints_failing_raises(self):
        web = _client(error=UpstreamError("boom", status_code=500))
        news = _client(error=requests.ConnectionError("unreachable"))

        multi = MultiEndpointSearch({"web": web, "news": news})

        with self.assertRaises(SearchError) as ctx:
            multi.search(SearchRequest(query="q"))

        self.assertIn("All endpoints failed", str(ctx.exception))
        self.assertEqual(set(ctx.exception.metadata["errors"]), {"web", "news"})

    def test_requires_clients(self):
        with self.assertRaises(ValueError):
            MultiEndpointSearch({})

    def test_health_check_any_healthy(self):
        healthy = MagicMock()
        healthy.health_check.return_value = True
        unhealthy = MagicMock()
        unhealthy.health_check.return_value = False

        self.assertTrue(MultiEndpointSearch({"web": unhealthy, "news": healthy}).health_check())
        self.assertFalse(MultiEndpointSearch({"web": unhealthy}).health_check())


class TestMultiEndpointPacing(unittest.TestCase):

    def test_fanout_is_still_paced(self):
        """Parallel fan-out over simulated clients respects the shared interval."""
        interval = 0.1
        clients = SearchFactory.simulated(["web", "news", "images"], pacer=Pacer(min_interval=interval))
        session = clients["web"].session

        response = MultiEndpointSearch(clients).search(SearchRequest(query="weather", count=3))

        self.assertGreater(len(response.results), 0)
        starts = sorted(call["at"] for call in session.calls)
        self.assertEqual(len(starts), 3)
        for earlier, later in zip(starts, starts[1:]):
            self.assertGreaterEqual(later - earlier, interval - 0.01)

    def test_search_all_keys_by_endpoint(self):
        clients = SearchFactory.simulated(["news", "videos"], pacer=Pacer(min_interval=0))

        responses = MultiEndpointSearch(clients).search_all(SearchRequest(query="rust", count=2))

        self.assertEqual(list(responses), ["news", "videos"])
        self.assertIn("/news", responses["news"].results[0].url)
        self.assertIn("/videos", responses["videos"].results[0].url)


if __name__ == "__main__":
    unittest.main()
