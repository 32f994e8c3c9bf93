"""Tests for configuration loading and narrative backend selection."""

import os
from unittest.mock import patch

import pytest

from proposal_evaluation.config import Config, resolve_narrative_settings, validate_config
from proposal_evaluation.config.config import PROVIDER_LABELS
from proposal_evaluation.errors import ConfigurationError


def _config(**overrides) -> Config:
    """Config from explicit values only, isolated from the process environment."""
    values = {"supabase_url": "https://test.supabase.co", "supabase_key": "test-key"}
    values.update(overrides)
    with patch.dict(os.environ, {}, clear=True):
        return Config(_env_file=None, **values)


class TestConfigValidation:
    """Test startup config validation."""

    VALID_ENV = {
        "SUPABASE_URL": "https://test.supabase.co",
        "SUPABASE_KEY": "test-key-123",
        "AI_PROVIDER": "google",
        "GEMINI_API_KEY": "g-key",
        "EVALUATION_TIMEOUT_SECONDS": "45",
        "NARRATIVE_LOCALE": "en",
        "LOG_LEVEL": "DEBUG",
    }

    def test_valid_config_loads_successfully(self):
        """All required vars present → Config loads without error."""
        with patch.dict(os.environ, self.VALID_ENV, clear=True):
            config = validate_config()

        assert config.supabase_url == "https://test.supabase.co"
        assert config.supabase_key == "test-key-123"
        assert config.ai_provider == "google"
        assert config.google_api_key == "g-key"
        assert config.evaluation_timeout_seconds == 45
        assert config.narrative_locale == "en"
        assert config.log_level == "DEBUG"

    def test_legacy_key_spellings_accepted(self):
        env = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "k",
            "OPENAI_KEY": "sk-legacy",
            "GEMENI_API_KEY": "g-legacy",
        }
        with patch.dict(os.environ, env, clear=True):
            config = validate_config()

        assert config.openai_api_key == "sk-legacy"
        assert config.google_api_key == "g-legacy"

    def test_missing_required_vars_all_listed(self):
        """Missing required vars → one ValueError naming every one of them."""
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk"}, clear=True):
            with pytest.raises(ValueError) as exc_info:
                validate_config()

        message = str(exc_info.value)
        assert "SUPABASE_URL" in message
        assert "SUPABASE_KEY" in message

    def test_defaults(self):
        config = _config()

        assert config.openai_model == "gpt-4o"
        assert config.gemini_model == "gemini-1.5-flash-002"
        assert config.evaluation_timeout_seconds == 120
        assert config.narrative_locale == "he"

    def test_extraction_endpoint_defaults_to_functions_route(self):
        assert _config(supabase_url="https://x.supabase.co/").extraction_endpoint == (
            "https://x.supabase.co/functions/v1/extract-proposal-text"
        )
        assert _config(text_extraction_url="https://extract.local").extraction_endpoint == (
            "https://extract.local"
        )


class TestResolveNarrativeSettings:
    def test_explicit_provider_wins(self):
        settings = resolve_narrative_settings(
            _config(ai_provider="Anthropic", openai_api_key="sk", anthropic_api_key="a-key")
        )

        assert settings.provider == "anthropic"
        assert settings.api_key == "a-key"
        assert settings.model == "claude-3-5-sonnet-latest"
        assert PROVIDER_LABELS[settings.provider] == "anthropic"

    def test_first_configured_key_when_unset(self):
        settings = resolve_narrative_settings(_config(google_api_key="g-key", anthropic_api_key="a-key"))

        assert settings.provider == "google"
        assert settings.model == "gemini-1.5-flash-002"
        assert PROVIDER_LABELS[settings.provider] == "google-ai-studio"

    def test_timeout_and_locale_carried(self):
        settings = resolve_narrative_settings(
            _config(openai_api_key="sk", evaluation_timeout_seconds=30, narrative_locale="en")
        )

        assert settings.timeout_seconds == 30
        assert settings.locale == "en"

    def test_no_key_names_google(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_narrative_settings(_config())

        assert "google" in exc_info.value.message
        assert exc_info.value.error_code == "CONFIGURATION_ERROR"

    def test_selected_provider_without_key(self):
        with pytest.raises(ConfigurationError):
            resolve_narrative_settings(_config(ai_provider="openai", google_api_key="g-key"))

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_narrative_settings(_config(ai_provider="mistral", openai_api_key="sk"))

        assert "Unsupported AI provider" in exc_info.value.message

    @pytest.mark.parametrize("overrides", [
        {"evaluation_timeout_seconds": 0},
        {"narrative_locale": "fr"},
    ])
    def test_invalid_run_settings(self, overrides):
        with pytest.raises(ConfigurationError):
            resolve_narrative_settings(_config(openai_api_key="sk", **overrides))
