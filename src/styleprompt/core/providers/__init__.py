"""
Prompt generation providers: protocol and the built-in Gemini implementation.

The Gemini provider is created lazily on first get_provider() call to avoid
circular imports with core.generation.
"""

from styleprompt.core.providers.base import PromptGenerationProvider as PromptGenerationProvider

_provider: PromptGenerationProvider | None = None


def get_provider() -> PromptGenerationProvider:
    """Return the active provider, creating the Gemini provider on first use."""
    global _provider
    if _provider is None:
        from styleprompt.core.providers.gemini import GeminiProvider

        _provider = GeminiProvider()
    return _provider


def set_provider(provider: PromptGenerationProvider | None) -> None:
    """Replace the active provider; None restores the default on next use."""
    global _provider
    _provider = provider
