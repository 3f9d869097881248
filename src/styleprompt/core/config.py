"""
Configuration management for styleprompt.

This module holds the Gemini endpoint and model, request limits, batching
constants, and where the credential is persisted between sessions.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from styleprompt.logging_config import get_logger
from styleprompt.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration constants
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_REQUEST_TIMEOUT = 120
PROMPTS_PER_BATCH = 5
MAX_PROMPT_COUNT = 50
# Gemini rejects inline image data above 20 MB
DEFAULT_MAX_IMAGE_BYTES = 20 * 1024 * 1024
DEFAULT_KEYRING_SERVICE = "styleprompt"


@dataclass
class Config:
    """Configuration for the styleprompt application."""

    # Fallback credential from the environment (excluded from repr to avoid leaking secrets)
    gemini_api_key: str = field(default="", repr=False)
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    model: str = DEFAULT_MODEL

    # Timeout Configuration (seconds)
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT

    # Batching
    batch_size: int = PROMPTS_PER_BATCH
    max_prompt_count: int = MAX_PROMPT_COUNT

    # Image intake
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES

    # Keychain service the API key is stored under
    keyring_service: str = DEFAULT_KEYRING_SERVICE

    # Debug: log raw API payload/response with image data truncated
    debug_api: bool = False

    _validated: bool = field(default=False, repr=False)

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Environment variables:
            GEMINI_API_KEY: Optional; pre-fills the credential when none is stored
            STYLEPROMPT_GEMINI_BASE_URL: Optional Gemini API base URL
            STYLEPROMPT_MODEL: Optional model id (default gemini-2.5-flash)
            STYLEPROMPT_REQUEST_TIMEOUT: Optional per-request timeout in seconds
            STYLEPROMPT_MAX_IMAGE_BYTES: Optional upper bound on uploaded image size
            STYLEPROMPT_KEYRING_SERVICE: Optional keychain service name for the stored key
            STYLEPROMPT_DEBUG_API: Optional; 1/true/yes logs truncated API payloads

        Returns:
            Config instance populated from environment

        Raises:
            ConfigurationError: If a numeric variable is not an integer
        """

        def _int_env(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None or val.strip() == "":
                return default
            try:
                return int(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be an integer, got {val!r}.") from e

        debug_api = os.getenv("STYLEPROMPT_DEBUG_API", "").strip().lower() in ("1", "true", "yes")

        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_base_url=os.getenv("STYLEPROMPT_GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL),
            model=os.getenv("STYLEPROMPT_MODEL", DEFAULT_MODEL),
            request_timeout=_int_env("STYLEPROMPT_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            max_image_bytes=_int_env("STYLEPROMPT_MAX_IMAGE_BYTES", DEFAULT_MAX_IMAGE_BYTES),
            keyring_service=os.getenv("STYLEPROMPT_KEYRING_SERVICE", "").strip()
            or DEFAULT_KEYRING_SERVICE,
            debug_api=debug_api,
        )

    def validate(self) -> None:
        """
        Validate the configuration.

        No credential is required here: it is supplied per run from the UI
        or the credential store.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger.debug("Validating config")

        if not self.model or not self.model.strip():
            raise ConfigurationError("Model id cannot be empty.")
        if not self.gemini_base_url or not self.gemini_base_url.strip():
            raise ConfigurationError("Gemini base URL cannot be empty.")
        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}."
            )
        if self.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {self.batch_size}.")
        if self.max_prompt_count <= 0:
            raise ConfigurationError(
                f"max_prompt_count must be positive, got {self.max_prompt_count}."
            )
        if self.batch_size > self.max_prompt_count:
            raise ConfigurationError(
                f"batch_size ({self.batch_size}) must not exceed "
                f"max_prompt_count ({self.max_prompt_count})."
            )
        if self.max_image_bytes <= 0:
            raise ConfigurationError(
                f"max_image_bytes must be positive, got {self.max_image_bytes}."
            )
        if not self.keyring_service or not self.keyring_service.strip():
            raise ConfigurationError("Keychain service name cannot be empty.")

        self._validated = True

    def is_valid(self) -> bool:
        """
        Check if configuration has been validated.

        Returns:
            True if validate() has been called successfully
        """
        return self._validated

    def set_model(self, model: str) -> None:
        """
        Set the Gemini model used for prompt generation.

        Args:
            model: Gemini model id (e.g. 'gemini-2.5-flash')

        Raises:
            ConfigurationError: If model is empty
        """
        if not model or not model.strip():
            raise ConfigurationError("Model id cannot be empty")

        self.model = model.strip()
        self._validated = False

    def set_request_timeout(self, seconds: int) -> None:
        """
        Set the per-request timeout.

        Raises:
            ConfigurationError: If seconds is not positive
        """
        if seconds <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {seconds}")

        self.request_timeout = seconds
        self._validated = False


# Global configuration instance
_global_config: Config | None = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        The global Config instance
    """
    global _global_config
    if _global_config is None:
        _global_config = Config.from_env()
    return _global_config


def set_config(config: Config) -> None:
    """
    Set the global configuration instance.

    Args:
        config: The Config instance to use globally
    """
    global _global_config
    _global_config = config
