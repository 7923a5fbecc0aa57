"""Factory for creating Brave endpoint clients.

Handles API key resolution, endpoint enablement and pacer sharing.
"""

import logging
from typing import TYPE_CHECKING, Dict, Iterable, Optional

import requests

from .api_key_validator import validate_brave_api_key
from .brave import BraveSearchClient, get_endpoint
from .pacer import Pacer, get_default_pacer
from .simulated import SIMULATED_API_KEY, SimulatedBraveSession

if TYPE_CHECKING:
    from PSC.services.shared.settings import PSCSettings

logger = logging.getLogger(__name__)


def resolve_api_key(
    api_key: Optional[str] = None,
    settings: Optional["PSCSettings"] = None,
) -> Optional[str]:
    """Find the subscription token.

    Resolution order:
    1. Explicit api_key argument
    2. Settings (BRAVE_API_KEY / config file)
    3. Configured secret provider
    """
    if api_key:
        return api_key

    from PSC.services.shared.secrets import get_secret_provider
    from PSC.services.shared.settings import get_settings

    settings = settings or get_settings()
    if settings.brave.api_key:
        return settings.brave.api_key.get_secret_value()

    provider = get_secret_provider(settings.secrets.provider, config=settings.secrets)
    return provider.get_secret("BRAVE_API_KEY")


class SearchFactory:
    """Factory to instantiate Brave endpoint clients based on configuration.

    Every client built here shares one Pacer, so pacing is global across
    all endpoint variants combined.
    """

    @staticmethod
    def get_client(
        endpoint: str = "web",
        api_key: Optional[str] = None,
        pacer: Optional[Pacer] = None,
        session: Optional[requests.Session] = None,
        settings: Optional["PSCSettings"] = None,
        run_id: Optional[str] = None,
    ) -> BraveSearchClient:
        """Build a single endpoint client.

        Raises:
            APIKeyError: No usable API key could be resolved.
            ConfigurationError: Unknown endpoint name.
        """
        from PSC.services.shared.settings import get_settings

        settings = settings or get_settings()
        effective_key = resolve_api_key(api_key, settings)
        validate_brave_api_key(effective_key or "", raise_on_invalid=True)

        return BraveSearchClient(
            endpoint=get_endpoint(endpoint, api_root=settings.brave.base_url),
            api_key=effective_key,
            pacer=pacer or get_default_pacer(),
            session=session,
            timeout_seconds=settings.brave.timeout_seconds,
            run_id=run_id,
        )

    @staticmethod
    def build_clients(
        api_key: Optional[str] = None,
        pacer: Optional[Pacer] = None,
        session: Optional[requests.Session] = None,
        settings: Optional["PSCSettings"] = None,
        run_id: Optional[str] = None,
        endpoints: Optional[Iterable[str]] = None,
    ) -> Dict[str, BraveSearchClient]:
        """Build clients for every enabled endpoint.

        Endpoints are disabled entirely when no valid API key is configured;
        the result is then an empty dict rather than an error.
        """
        from PSC.services.shared.settings import get_settings

        settings = settings or get_settings()
        effective_key = resolve_api_key(api_key, settings)
        is_valid, _ = validate_brave_api_key(effective_key or "", raise_on_invalid=False)
        if not is_valid:
            logger.warning("Brave search disabled: no valid BRAVE_API_KEY configured")
            return {}

        keys = list(endpoints) if endpoints is not None else settings.brave.enabled_endpoints
        shared_pacer = pacer or get_default_pacer()
        shared_session = session or requests.Session()

        clients: Dict[str, BraveSearchClient] = {}
        for key in keys:
            descriptor = get_endpoint(key, api_root=settings.brave.base_url)
            clients[descriptor.key] = BraveSearchClient(
                endpoint=descriptor,
                api_key=effective_key,
                pacer=shared_pacer,
                session=shared_session,
                timeout_seconds=settings.brave.timeout_seconds,
                run_id=run_id,
            )

        logger.debug(f"Built Brave clients: {', '.join(clients) or 'none'}")
        return clients

    @staticmethod
    def simulated(
        endpoints: Optional[Iterable[str]] = None,
        pacer: Optional[Pacer] = None,
        latency_mean: float = 0.0,
        run_id: Optional[str] = None,
    ) -> Dict[str, BraveSearchClient]:
        """Clients backed by the offline simulated transport."""
        from PSC.services.shared.settings import get_settings

        settings = get_settings()
        session = SimulatedBraveSession(latency_mean=latency_mean)
        keys = list(endpoints) if endpoints is not None else settings.brave.enabled_endpoints
        shared_pacer = pacer or get_default_pacer()

        return {
            descriptor.key: BraveSearchClient(
                endpoint=descriptor,
                api_key=SIMULATED_API_KEY,
                pacer=shared_pacer,
                session=session,
                run_id=run_id,
            )
            for descriptor in (get_endpoint(key) for key in keys)
        }
