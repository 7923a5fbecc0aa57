import json
import random
import threading
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import requests

# Passes key validation; only accepted by the simulated transport.
SIMULATED_API_KEY = "simulated-subscription-token"


class SimulatedBraveSession:
    """A deterministic stand-in for the Brave HTTP API.

    Drop-in replacement for the ``requests.Session`` used by
    ``BraveSearchClient``: it answers ``get`` with provider-shaped envelopes
    (nested ``web.results`` for web search, flat ``results`` otherwise), so
    clients, pacing and decoding can be exercised without network access
    or API costs. Every call is recorded in ``calls``.
    """

    def __init__(self, latency_mean: float = 0.0):
        self.latency_mean = latency_mean
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        params = params or {}
        headers = headers or {}
        with self._lock:
            self.calls.append({
                "url": url,
                "params": dict(params),
                "headers": dict(headers),
                "timeout": timeout,
                "at": time.monotonic(),
            })

        if self.latency_mean > 0:
            time.sleep(max(0.0, random.gauss(self.latency_mean, self.latency_mean / 4)))

        if not headers.get("X-Subscription-Token"):
            return _make_response(401, {
                "type": "ErrorResponse",
                "error": {"code": "SUBSCRIPTION_TOKEN_INVALID", "detail": "The provided subscription token is invalid."},
            }, url)

        query = str(params.get("q", ""))
        count = int(params.get("count", 10))
        offset = int(params.get("offset", 0))
        kind = _endpoint_kind(url)

        results = self._generate_mock_results(kind, query, count, offset)
        if kind == "web":
            payload = {"type": "search", "query": {"original": query}, "web": {"type": "search", "results": results}}
        else:
            payload = {"type": kind, "query": {"original": query}, "results": results}
        return _make_response(200, payload, url)

    def close(self) -> None:
        pass

    def _generate_mock_results(self, kind: str, query: str, count: int, offset: int) -> List[Dict[str, Any]]:
        q_lower = query.lower()
        candidates: List[Dict[str, Any]] = []

        # Keyword-driven fixtures first so simple demos look plausible
        if "quantum" in q_lower:
            candidates.append({
                "title": "Quantum Computing Impact on Cryptography - Nature",
                "url": "https://www.nature.com/articles/s41586-023-0001",
                "description": "Shor's algorithm poses a significant threat to RSA encryption...",
            })
            candidates.append({
                "title": "NIST Post-Quantum Cryptography Standardization",
                "url": "https://csrc.nist.gov/projects/post-quantum-cryptography",
                "description": "NIST has announced the first four quantum-resistant cryptographic algorithms...",
            })
        elif "weather" in q_lower:
            candidates.append({
                "title": "Current Weather Forecast",
                "url": "https://weather.com/forecast",
                "description": "Today's forecast: Sunny with a high of 75F...",
            })

        domains = ["example.com", "test.org", "sample.net", "benchmark.io", "mock.co"]
        start = offset * count
        for i in range(start, start + count):
            domain = domains[i % len(domains)]
            item = {
                "title": f"{kind.title()} result {i + 1} for '{query}'",
                "url": f"https://{domain}/{kind}?q={query}&id={i}",
            }
            # Image hits carry no description, like the real API
            if kind != "images":
                item["description"] = f"This is a simulated {kind} result for the query '{query}'."
            candidates.append(item)

        if offset > 0:
            candidates = candidates[-count:]
        return candidates[:count]


def _endpoint_kind(url: str) -> str:
    # .../res/v1/<kind>/search
    parts = [part for part in urlparse(url).path.split("/") if part]
    if len(parts) >= 2 and parts[-1] == "search":
        return parts[-2]
    return "web"


def _make_response(status: int, payload: Dict[str, Any], url: str) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(payload).encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    response.headers["Content-Type"] = "application/json"
    return response
