"""Lookup of the Brave subscription token.

The provider authenticates with one static token, so a provider here only
has to find a value by name; nothing is refreshed or rotated. The backend is
chosen by ``secrets.provider`` in settings (``PSC_SECRETS_PROVIDER``):

- ``environment``: read the process environment (local development)
- ``aws_secrets_manager``: read ``<prefix><key>`` from AWS Secrets Manager
"""

import base64
import json
import logging
import os
from typing import Dict, Optional, Protocol

from PSC.services.shared.errors import ConfigurationError

logger = logging.getLogger(__name__)

PROVIDER_ENVIRONMENT = "environment"
PROVIDER_AWS = "aws_secrets_manager"


class SecretProvider(Protocol):
    def get_secret(self, key: str) -> Optional[str]:
        """Value stored under ``key``, or None when there is none."""
        ...


class EnvironmentSecretProvider:
    def get_secret(self, key: str) -> Optional[str]:
        return os.environ.get(key)


class AWSSecretsManagerProvider:
    """Reads secrets from AWS Secrets Manager.

    A secret may hold the bare token or a JSON object keyed by secret name
    (``{"BRAVE_API_KEY": "..."}``), the usual shape when several values
    share one secret. Values are cached per provider instance.

    boto3 is an optional dependency: ``pip install psc-search[aws]``.
    """

    def __init__(self, region: str = "us-west-2", prefix: str = "psc/"):
        self.region = region
        self.prefix = prefix
        self._client = None
        self._cache: Dict[str, Optional[str]] = {}

    @property
    def client(self):
        if self._client is None:
            try:
                import boto3
            except ImportError as e:
                raise ImportError(
                    "AWS Secrets Manager support needs boto3: pip install psc-search[aws]"
                ) from e
            self._client = boto3.client("secretsmanager", region_name=self.region)
        return self._client

    def get_secret(self, key: str) -> Optional[str]:
        if key not in self._cache:
            self._cache[key] = self._fetch(key)
        return self._cache[key]

    def _fetch(self, key: str) -> Optional[str]:
        secret_id = f"{self.prefix}{key}"
        client = self.client
        try:
            response = client.get_secret_value(SecretId=secret_id)
        except client.exceptions.ResourceNotFoundException:
            logger.warning(f"Secret '{secret_id}' not found in AWS Secrets Manager ({self.region})")
            return None

        if "SecretString" in response:
            raw = response["SecretString"]
        else:
            raw = base64.b64decode(response["SecretBinary"]).decode("utf-8")
        return _unwrap(raw, key)


def _unwrap(raw: str, key: str) -> Optional[str]:
    # JSON object secrets carry the value under the key name
    try:
        document = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(document, dict):
        value = document.get(key)
        return None if value is None else str(value)
    return raw


def get_secret_provider(provider_type: Optional[str] = None, config=None) -> SecretProvider:
    """Build the configured secret provider.

    Args:
        provider_type: "environment" or "aws_secrets_manager"; defaults to
            the ``secrets.provider`` setting.
        config: ``SecretsConfig`` to build from; defaults to the cached
            settings.

    Raises:
        ConfigurationError: Unknown provider name.
    """
    if config is None:
        from PSC.services.shared.settings import get_settings

        config = get_settings().secrets
    kind = provider_type or config.provider

    if kind == PROVIDER_ENVIRONMENT:
        return EnvironmentSecretProvider()
    if kind == PROVIDER_AWS:
        return AWSSecretsManagerProvider(
            region=config.aws.region,
            prefix=config.aws.secret_name_prefix,
        )
    raise ConfigurationError(
        f"Unknown secrets provider '{kind}'. Use '{PROVIDER_ENVIRONMENT}' or '{PROVIDER_AWS}'."
    )
