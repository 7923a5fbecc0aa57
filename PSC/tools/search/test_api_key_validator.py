"""Tests for Brave subscription token validation."""

import os
from unittest.mock import patch

import pytest

from PSC.services.shared.errors import ConfigurationError
from PSC.tools.search.api_key_validator import (
    APIKeyError,
    MIN_KEY_LENGTH,
    validate_brave_api_key,
)


class TestValidateBraveApiKey:
    """Validation outcomes for explicit keys"""

    def test_valid_key(self):
        is_valid, error = validate_brave_api_key("BSA" + "x" * MIN_KEY_LENGTH)

        assert is_valid is True
        assert error is None

    def test_missing_key_raises(self):
        with patch.dict(os.environ, {"BRAVE_API_KEY": ""}):
            with pytest.raises(APIKeyError) as exc_info:
                validate_brave_api_key(None)

        assert "not configured" in str(exc_info.value)
        assert "--simulated" in str(exc_info.value)

    def test_blank_key(self):
        is_valid, error = validate_brave_api_key("   ", raise_on_invalid=False)

        assert is_valid is False
        assert "empty" in error

    @pytest.mark.parametrize("placeholder", ["your-api-key", "CHANGEME", "test-key"])
    def test_placeholder_key(self, placeholder):
        is_valid, error = validate_brave_api_key(placeholder, raise_on_invalid=False)

        assert is_valid is False
        assert "placeholder" in error

    def test_short_key_is_masked(self):
        is_valid, error = validate_brave_api_key("BSAsecret123", raise_on_invalid=False)

        assert is_valid is False
        assert "BSAs..." in error
        assert "BSAsecret123" not in error

    def test_falls_back_to_environment(self):
        with patch.dict(os.environ, {"BRAVE_API_KEY": "BSA" + "y" * MIN_KEY_LENGTH}):
            is_valid, _ = validate_brave_api_key()

        assert is_valid is True


class TestAPIKeyError:
    """APIKeyError is part of the configuration error family"""

    def test_is_configuration_error(self):
        exc = APIKeyError("missing")

        assert isinstance(exc, ConfigurationError)
        assert exc.user_message == "missing"
        assert exc.service == "config"
