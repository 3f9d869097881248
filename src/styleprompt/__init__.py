"""
styleprompt - Image-to-Prompt Generator

A Python package that turns a reference image into text-to-image prompts that
reproduce its artistic style with new subjects, using the Google Gemini API.

Library usage:
- Configuration can be passed per operation (e.g. generate_prompts(..., config=my_config))
  or via the shared config: use get_config() / set_config() and omit the config argument.
- A run for N prompts is split into batches of five; use iter_generation() to observe
  progress, or run_generation() to drive a run to completion. Pass cancel_check to stop.
- Logging: nothing is printed until configure_logging(tier) is called; tier 1 adds prompt text,
  tier 2 adds Gemini payloads. STYLEPROMPT_VERBOSITY (0/1/2) sets the tier when the UI starts.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("styleprompt")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source in development)
    __version__ = "0.0.0.dev"

from styleprompt.core.batch import BatchCompleted, BatchStarted, iter_generation, run_generation
from styleprompt.core.config import (
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_MODEL,
    MAX_PROMPT_COUNT,
    PROMPTS_PER_BATCH,
    Config,
    get_config,
    set_config,
)
from styleprompt.core.credentials import CredentialStore, load_initial_credential
from styleprompt.core.generation import GenerationRequest, GenerationResult, generate_prompts
from styleprompt.core.image_input import ImagePayload, accept_dropped_file, load_picked_file
from styleprompt.core.prompt import build_instruction, format_prompt_list
from styleprompt.core.session import RunStatus, SessionState
from styleprompt.logging_config import configure_logging
from styleprompt.utils.exceptions import (
    APIError,
    AuthenticationError,
    CancellationError,
    ConfigurationError,
    ImageProcessingError,
    MalformedResponseError,
    MissingInputError,
    ModelUnavailableError,
    NetworkError,
    RequestTimeoutError,
    StylepromptError,
    ValidationError,
)

__all__ = [
    "APIError",
    "AuthenticationError",
    "BatchCompleted",
    "BatchStarted",
    "CancellationError",
    "configure_logging",
    "Config",
    "ConfigurationError",
    "CredentialStore",
    "DEFAULT_GEMINI_BASE_URL",
    "DEFAULT_MODEL",
    "GenerationRequest",
    "GenerationResult",
    "ImagePayload",
    "ImageProcessingError",
    "MalformedResponseError",
    "MAX_PROMPT_COUNT",
    "MissingInputError",
    "ModelUnavailableError",
    "NetworkError",
    "PROMPTS_PER_BATCH",
    "RequestTimeoutError",
    "RunStatus",
    "SessionState",
    "StylepromptError",
    "ValidationError",
    "accept_dropped_file",
    "build_instruction",
    "format_prompt_list",
    "generate_prompts",
    "get_config",
    "iter_generation",
    "load_initial_credential",
    "load_picked_file",
    "run_generation",
    "set_config",
]
