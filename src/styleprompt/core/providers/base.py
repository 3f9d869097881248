"""
Provider protocol for prompt generation.

Defines the interface a model backend must implement to serve one batch call.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from styleprompt.core.config import Config

if TYPE_CHECKING:
    from styleprompt.core.generation import GenerationRequest, GenerationResult


class PromptGenerationProvider(Protocol):
    """Protocol for prompt generation providers.

    Providers implement HTTP (or equivalent) communication with a model backend
    and return a validated GenerationResult.
    """

    def generate(
        self,
        request: GenerationRequest,
        credential: str,
        model: str,
        timeout: int,
        config: Config,
        cancel_check: Callable[[], bool] | None,
    ) -> GenerationResult:
        """Run one structured generation call.

        May raise AuthenticationError, ModelUnavailableError, MalformedResponseError,
        APIError, NetworkError, RequestTimeoutError, or CancellationError.
        """
        ...
