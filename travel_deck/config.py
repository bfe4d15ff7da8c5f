"""
Configuration management for the travel deck pipeline.

This module handles loading and managing configuration for the deck
generation pipeline, including environment variables, API keys, quality
thresholds and the per-card model profiles used by the text backend.
"""

import os
from dataclasses import dataclass, field
from enum import Enum

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_MODEL = "gemini-2.5-flash"

# (temperature, max_tokens) per card type; factual cards run cooler
CARD_PROFILE_DEFAULTS: dict[str, tuple[float, int]] = {
    "overview": (0.6, 2000),
    "itinerary": (0.7, 4000),
    "transport": (0.4, 2500),
    "accommodation": (0.5, 2500),
    "attractions": (0.7, 2500),
    "dining": (0.7, 2000),
    "budget": (0.3, 2000),
    "visa": (0.2, 1500),
    "weather": (0.4, 1500),
    "culture": (0.6, 1500),
    "emergency": (0.2, 1500),
    "shopping": (0.6, 1500),
}


class LogLevel(str, Enum):
    """Log levels supported by the system."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ModelProfile(BaseModel):
    """Model, temperature and token limit used to generate one card type."""

    name: str = Field(default=DEFAULT_MODEL, description="Model name to use")
    temperature: float = Field(default=0.7, description="Model temperature")
    max_tokens: int | None = Field(default=None, description="Max tokens to generate")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        """Validate temperature is within reasonable bounds."""
        if not (0.0 <= value <= 1.0):
            raise ValueError(f"Temperature must be between 0.0 and 1.0, got {value}")
        return value

    @classmethod
    def from_env(
        cls,
        prefix: str = "",
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> "ModelProfile":
        """
        Create a ModelProfile from environment variables.

        Args:
            prefix: Variable prefix, e.g. ``BUDGET`` reads ``BUDGET_MODEL``
            temperature: Temperature used when the variable is unset
            max_tokens: Token limit used when the variable is unset

        Returns:
            Model profile with environment overrides applied
        """
        prefix = f"{prefix}_" if prefix else ""
        return cls(
            name=os.getenv(f"{prefix}MODEL", os.getenv("DECK_MODEL", DEFAULT_MODEL)),
            temperature=float(os.getenv(f"{prefix}TEMPERATURE", str(temperature))),
            max_tokens=int(os.getenv(f"{prefix}MAX_TOKENS", str(max_tokens or 0)))
            or None,
        )


class APIConfig(BaseModel):
    """Configuration for external APIs."""

    gemini_api_key: str = Field(default="", description="Gemini API key")
    rapidapi_key: str | None = Field(
        default=None, description="RapidAPI key for the travel-data providers"
    )

    class ValidationError(Exception):
        """Exception raised for API configuration validation errors."""

        def __init__(
            self, missing_keys: list[str], optional_missing: list[str] | None = None
        ):
            self.missing_keys = missing_keys
            self.optional_missing = optional_missing or []
            message = f"Missing required API keys: {', '.join(missing_keys)}"
            if optional_missing:
                message += f". Optional keys missing: {', '.join(optional_missing)}"
            super().__init__(message)

    @classmethod
    def from_env(cls) -> "APIConfig":
        """Create an APIConfig from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            rapidapi_key=os.getenv("RAPIDAPI_KEY"),
        )

    def validate(self, raise_error: bool = False) -> bool:
        """
        Validate that required API keys are present.

        Args:
            raise_error: If True, raise ValidationError instead of returning False

        Returns:
            True if all required keys are present, False otherwise

        Raises:
            ValidationError: If raise_error is True and validation fails
        """
        missing_keys = []
        optional_missing = []

        if not self.gemini_api_key:
            missing_keys.append("GEMINI_API_KEY")
        if not self.rapidapi_key:
            optional_missing.append("RAPIDAPI_KEY")

        if optional_missing:
            logger.warning(
                f"Optional API keys missing: {', '.join(optional_missing)}. "
                f"Decks will be generated without live travel data."
            )

        if missing_keys:
            logger.error(f"Missing required API keys: {', '.join(missing_keys)}")
            if raise_error:
                raise self.ValidationError(missing_keys, optional_missing)
            return False

        return True


class QualityThresholds(BaseModel):
    """Score thresholds that drive strategy selection and escalation."""

    high: float = Field(default=0.8, description="Mean quality for ApiFirst")
    medium: float = Field(default=0.6, description="Mean quality for ApiEnhanced")
    low: float = Field(
        default=0.4,
        description="Mean quality for LlmWithContext; also the usable cut-off",
    )
    escalation_completeness: float = Field(
        default=0.6, description="Content completeness below which a card is retried"
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_ordering(self) -> "QualityThresholds":
        """Thresholds must sit in [0, 1] and descend high > medium > low."""
        for value in (self.high, self.medium, self.low, self.escalation_completeness):
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"Thresholds must be between 0.0 and 1.0, got {value}")
        if not (self.high > self.medium > self.low):
            raise ValueError(
                "Thresholds must descend: "
                f"high={self.high}, medium={self.medium}, low={self.low}"
            )
        return self


class PipelineConfig(BaseModel):
    """Runtime settings for the deck generation pipeline."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    environment: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )
    max_concurrency: int = Field(default=6, description="Card tasks run at once")
    generation_timeout: float = Field(
        default=45.0, description="Hard timeout for one backend call, in seconds"
    )
    source_timeout: float = Field(
        default=20.0, description="Hard timeout for one source fetch, in seconds"
    )
    rate_limit_ceiling: float = Field(
        default=30.0, description="Longest backoff before RateLimitExceeded"
    )
    source_slice_chars: int = Field(
        default=4000, description="Raw source JSON embedded per enhanced prompt"
    )
    home_currency: str = Field(default="INR", description="Budget currency")

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Create a PipelineConfig from environment variables."""
        return cls(
            log_level=LogLevel(os.getenv("LOG_LEVEL", "INFO")),
            environment=os.getenv("ENVIRONMENT", "development"),
            max_concurrency=int(os.getenv("MAX_CONCURRENCY", "6")),
            generation_timeout=float(os.getenv("GENERATION_TIMEOUT", "45")),
            source_timeout=float(os.getenv("SOURCE_TIMEOUT", "20")),
            rate_limit_ceiling=float(os.getenv("RATE_LIMIT_CEILING", "30")),
            source_slice_chars=int(os.getenv("SOURCE_SLICE_CHARS", "4000")),
            home_currency=os.getenv("HOME_CURRENCY", "INR"),
        )


def _default_model_profiles() -> dict[str, ModelProfile]:
    return {
        card: ModelProfile.from_env(card.upper(), temperature, max_tokens)
        for card, (temperature, max_tokens) in CARD_PROFILE_DEFAULTS.items()
    }


@dataclass
class DeckConfig:
    """Main configuration class for the travel deck pipeline."""

    api: APIConfig = field(default_factory=APIConfig.from_env)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig.from_env)
    thresholds: QualityThresholds = field(default_factory=QualityThresholds)
    model_profiles: dict[str, ModelProfile] = field(default_factory=dict)

    def __post_init__(self):
        """Initialize model profiles if not provided."""
        if not self.model_profiles:
            self.model_profiles = _default_model_profiles()

    class ConfigurationError(Exception):
        """Exception raised for configuration validation errors."""

        pass

    def validate(self, raise_error: bool = False) -> bool:
        """
        Validate the entire configuration.

        Args:
            raise_error: If True, raise ConfigurationError instead of returning False

        Returns:
            True if configuration is valid, False otherwise

        Raises:
            ConfigurationError: If raise_error is True and validation fails
        """
        try:
            self.api.validate(raise_error=True)

            if self.pipeline.max_concurrency <= 0:
                raise ValueError("Max concurrency must be positive")
            if self.pipeline.generation_timeout <= 0:
                raise ValueError("Generation timeout must be positive")
            if self.pipeline.source_timeout <= 0:
                raise ValueError("Source timeout must be positive")
            if self.pipeline.source_slice_chars <= 0:
                raise ValueError("Source slice size must be positive")

            return True

        except Exception as e:
            if not isinstance(e, self.api.ValidationError):
                logger.error(f"Configuration validation failed: {e!s}")

            if raise_error:
                raise self.ConfigurationError(
                    f"Configuration validation failed: {e!s}"
                ) from e

            return False

    def get_model_profile(self, card_type: str) -> ModelProfile:
        """
        Get the model profile for a card type.

        Args:
            card_type: Card type name (or CardType member)

        Returns:
            ModelProfile for the card, or a default profile if not configured
        """
        key = str(getattr(card_type, "value", card_type))
        return self.model_profiles.get(
            key, self.model_profiles.get("default", ModelProfile())
        )


# Global configuration instance
config = DeckConfig()


def initialize_config(
    custom_config_path: str | None = None,
    validate: bool = True,
    raise_on_error: bool = False,
) -> DeckConfig:
    """
    Initialize and validate the configuration.

    Args:
        custom_config_path: Path to a custom .env file to load
        validate: Whether to validate the configuration
        raise_on_error: Whether to raise an exception on validation failure

    Returns:
        Initialized and validated configuration object

    Raises:
        DeckConfig.ConfigurationError: If validation fails and raise_on_error is True
        FileNotFoundError: If custom_config_path is provided but does not exist
    """
    if custom_config_path:
        if not os.path.exists(custom_config_path):
            error_msg = f"Custom configuration file not found: {custom_config_path}"
            logger.error(error_msg)
            raise FileNotFoundError(error_msg)

        logger.info(f"Loading custom configuration from {custom_config_path}")
        load_dotenv(custom_config_path, override=True)

        # Refresh the shared instance in place so importers see the new values
        config.api = APIConfig.from_env()
        config.pipeline = PipelineConfig.from_env()
        config.model_profiles = {}
        config.__post_init__()

    if validate:
        is_valid = config.validate(raise_error=raise_on_error)
        if not is_valid:
            logger.warning(
                "Configuration validation failed. Cards will fall back to local "
                "placeholders until GEMINI_API_KEY is set."
            )
            logger.info("Required environment variables: GEMINI_API_KEY")
            logger.info("Optional environment variables: RAPIDAPI_KEY")

    return config
