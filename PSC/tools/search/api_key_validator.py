"""Brave subscription token checks.

Catches the usual setup mistakes before a request is sent: no token, a
blank one, a copied placeholder, or a truncated paste. Each failure comes
with instructions for fixing it.
"""

import os
from typing import Optional, Tuple

from PSC.services.shared.errors import ConfigurationError

DASHBOARD_URL = "https://api-dashboard.search.brave.com"

# Shorter values are almost always truncated copies
MIN_KEY_LENGTH = 20

PLACEHOLDER_VALUES = {
    "your-api-key",
    "your-brave-api-key",
    "your-key",
    "your-key-here",
    "your-actual-token",
    "changeme",
    "test-key",
}


class APIKeyError(ConfigurationError):
    """The subscription token is missing or unusable; the message says how to fix it."""


def validate_brave_api_key(
    api_key: Optional[str] = None,
    raise_on_invalid: bool = True,
) -> Tuple[bool, Optional[str]]:
    """Check a Brave subscription token.

    Args:
        api_key: Token to check. None means "use BRAVE_API_KEY".
        raise_on_invalid: Raise APIKeyError instead of returning the failure.

    Returns:
        (True, None) for a usable token, otherwise (False, setup instructions).

    Raises:
        APIKeyError: The token is unusable and raise_on_invalid is set.
    """
    token = api_key if api_key is not None else os.getenv("BRAVE_API_KEY")
    problem = _diagnose(token)

    if problem is None:
        return True, None
    if raise_on_invalid:
        raise APIKeyError(problem)
    return False, problem


def _diagnose(token: Optional[str]) -> Optional[str]:
    if not token:
        return _setup_instructions(
            "Brave Search API key not configured.",
            offer_alternatives=True,
        )

    stripped = token.strip()
    if not stripped:
        return _setup_instructions(
            "Brave Search API key is empty.",
            "BRAVE_API_KEY is set but contains only whitespace.",
        )
    if stripped.lower() in PLACEHOLDER_VALUES:
        return _setup_instructions(
            f'Brave Search API key appears to be a placeholder: "{stripped}"',
            "Replace it with the token shown in your Brave dashboard.",
        )
    if len(stripped) < MIN_KEY_LENGTH:
        return _setup_instructions(
            f'Brave Search API key appears to be invalid: "{_mask(stripped)}"',
            f"Subscription tokens are at least {MIN_KEY_LENGTH} characters; this one looks truncated.",
        )
    return None


def _mask(token: str) -> str:
    return token[:4] + "..." if len(token) > 4 else "***"


def _setup_instructions(headline: str, detail: Optional[str] = None, offer_alternatives: bool = False) -> str:
    lines = [headline, ""]
    if detail:
        lines += [detail, ""]
    lines += [
        f"Get a subscription token from {DASHBOARD_URL} and export it:",
        "",
        '    export BRAVE_API_KEY="your-actual-token"',
    ]
    if offer_alternatives:
        lines += [
            "",
            "You can also pass it for a single command with --api-key,",
            "or run against the offline transport with --simulated.",
        ]
    return "\n".join(lines) + "\n"
