"""Shared error handling infrastructure for PSC.

Provides the base exception hierarchy, user-facing error messages
and the mapping from exceptions to CLI exit codes.
"""

import logging
from typing import Optional, Dict, Any

import requests

logger = logging.getLogger(__name__)


class PSCError(Exception):
    """Base exception for all PSC errors.

    All PSC errors include:
    - run_id: Correlation identifier of the calling run
    - service: Which component raised the error
    - metadata: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        run_id: Optional[str] = None,
        service: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.run_id = run_id
        self.service = service
        self.metadata = metadata or {}
        self.user_message = user_message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "run_id": self.run_id,
            "service": self.service,
            "metadata": self.metadata
        }


class ConfigurationError(PSCError):
    """Missing or invalid configuration (API key, endpoint name, settings file)."""

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message, service="config", metadata=metadata, user_message=message)


# CLI exit codes
EXIT_GENERIC = 1
EXIT_CONFIGURATION = 2
EXIT_UPSTREAM = 3
EXIT_DECODE = 4


def format_user_error(error: Exception, include_details: bool = False) -> str:
    """Convert exception to user-facing error message (no stack traces)."""
    # Imported here: the search package depends on this module
    from PSC.tools.search.base import DecodeError, UpstreamError

    if isinstance(error, UpstreamError):
        if error.empty_body:
            return "The search provider returned an empty response."
        return f"The search provider rejected the request (HTTP {error.status_code})."
    if isinstance(error, DecodeError):
        return "The search provider returned a response in an unrecognized format."

    if isinstance(error, PSCError):
        if error.user_message:
            return error.user_message

        service_name = error.service or "search"
        base_message = f"{service_name.title()} component encountered an error"

        if include_details:
            return f"{base_message}: {error.message}"
        return f"{base_message}."

    if isinstance(error, ValueError):
        return f"Invalid input: {str(error)}"
    if isinstance(error, (TimeoutError, requests.Timeout)):
        return "The search request timed out."
    if isinstance(error, (ConnectionError, requests.ConnectionError)):
        return "Connection to the search provider failed. Please check your network connection."

    # Generic fallback
    if include_details:
        return f"Error ({type(error).__name__}): {str(error)}"
    return "An unexpected error occurred."


def map_to_exit_code(exc: Exception) -> int:
    """Map exception to the CLI process exit code."""
    from PSC.tools.search.base import DecodeError, UpstreamError

    if isinstance(exc, ConfigurationError):
        return EXIT_CONFIGURATION
    if isinstance(exc, UpstreamError):
        return EXIT_UPSTREAM
    if isinstance(exc, DecodeError):
        return EXIT_DECODE

    return EXIT_GENERIC


def log_error(
    error: Exception,
    run_id: Optional[str] = None,
    service: Optional[str] = None,
) -> None:
    """Log an error with its structured context attached."""
    context: Dict[str, Any] = {"run_id": run_id, "service": service}
    if isinstance(error, PSCError):
        context = {**error.to_dict(), **{k: v for k, v in context.items() if v}}
    logger.error(f"Error in {service or 'unknown'}: {error}", extra={"payload": context})
