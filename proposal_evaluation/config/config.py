"""Configuration management for the proposal evaluation engine."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings

from ..errors import ConfigurationError
from ..messages import SUPPORTED_LOCALES


REQUIRED_VARS = [
    "SUPABASE_URL",
    "SUPABASE_KEY",
]

SUPPORTED_PROVIDERS = ("openai", "google", "anthropic")

# Provider label recorded in evaluation metadata
PROVIDER_LABELS = {
    "openai": "openai",
    "google": "google-ai-studio",
    "anthropic": "anthropic",
}


class Config(BaseSettings):
    """Application configuration from environment variables."""

    # Required
    supabase_url: str
    supabase_key: str

    # Narrative backend
    ai_provider: Optional[str] = None
    openai_api_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("openai_api_key", "openai_key")
    )
    openai_model: str = "gpt-4o"
    google_api_key: Optional[str] = Field(
        None, validation_alias=AliasChoices("google_api_key", "gemeni_api_key", "gemini_api_key")
    )
    gemini_model: str = "gemini-1.5-flash-002"
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-3-5-sonnet-latest"
    evaluation_timeout_seconds: float = 120.0
    narrative_locale: str = "he"

    # Optional
    text_extraction_url: Optional[str] = None
    scoring_weights_file: Optional[str] = None
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "case_sensitive": False}

    @property
    def extraction_endpoint(self) -> str:
        """URL of the text extraction function (defaults to the Supabase functions route)."""
        if self.text_extraction_url:
            return self.text_extraction_url
        return f"{self.supabase_url.rstrip('/')}/functions/v1/extract-proposal-text"


class NarrativeSettings(BaseModel):
    """Resolved narrative backend selection for one evaluation run."""

    provider: str
    api_key: str
    model: str
    timeout_seconds: float = 120.0
    locale: str = "he"


def validate_config() -> Config:
    """Load and validate configuration from environment.

    Raises ValueError with descriptive message listing ALL missing
    required variables (not just the first one).
    """
    try:
        return Config()  # type: ignore[call-arg]
    except Exception as exc:
        missing = []
        err_str = str(exc)
        for var in REQUIRED_VARS:
            if var.lower() in err_str.lower():
                missing.append(var)
        if missing:
            names = ", ".join(missing)
            raise ValueError(
                f"Missing required environment variable(s): {names}. "
                "Please set them in your .env file or environment."
            ) from exc
        raise


def load_config() -> Config:
    """Load configuration from environment (startup entry point)."""
    return validate_config()


def resolve_narrative_settings(config: Config) -> NarrativeSettings:
    """Pick the narrative provider and its credentials once per run.

    An explicit ``ai_provider`` wins. Otherwise the first provider with a
    configured key is used, in the order openai, google, anthropic; with no
    key at all the choice falls to google so the error names a real provider.

    Args:
        config: Loaded application configuration.

    Returns:
        NarrativeSettings for the selected provider.

    Raises:
        ConfigurationError: Unknown provider, missing key, bad timeout or locale.
    """
    keys = {
        "openai": config.openai_api_key,
        "google": config.google_api_key,
        "anthropic": config.anthropic_api_key,
    }
    models = {
        "openai": config.openai_model,
        "google": config.gemini_model,
        "anthropic": config.anthropic_model,
    }

    provider = (config.ai_provider or "").strip().lower()
    if not provider:
        provider = next((name for name in SUPPORTED_PROVIDERS if keys[name]), "google")

    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"Unsupported AI provider: {provider}. "
            f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    api_key = keys[provider]
    if not api_key:
        raise ConfigurationError(f"API key for AI provider '{provider}' is not configured")

    if config.evaluation_timeout_seconds <= 0:
        raise ConfigurationError("evaluation_timeout_seconds must be positive")

    if config.narrative_locale not in SUPPORTED_LOCALES:
        raise ConfigurationError(f"Unsupported narrative locale: {config.narrative_locale}")

    return NarrativeSettings(
        provider=provider,
        api_key=api_key,
        model=models[provider],
        timeout_seconds=config.evaluation_timeout_seconds,
        locale=config.narrative_locale,
    )
