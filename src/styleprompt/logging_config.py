"""
Logging for styleprompt.

Every module logs under the ``styleprompt`` logger via get_logger(__name__).
Nothing is printed until configure_logging() attaches the stderr handler; the
UI launcher does that at startup, library users may do it themselves.

Detail tiers (``-v`` / ``-vv`` on styleprompt-ui, or STYLEPROMPT_VERBOSITY):

    0  run and batch lifecycle, timings, failures (INFO)
    1  tier 0 plus the user's description and every generated prompt (INFO)
    2  tier 1 plus token usage and request details (DEBUG), and the Gemini
       request payload (image data elided) and raw response text

The tier 2 payload dump can also be enabled on its own with
STYLEPROMPT_DEBUG_API (Config.debug_api). The API key is never logged.
"""

import logging
import os

ROOT_LOGGER_NAME = "styleprompt"
VERBOSITY_ENV = "STYLEPROMPT_VERBOSITY"
MAX_TIER = 2

_HANDLER_NAME = "styleprompt-stderr"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_DATE_FORMAT = "%H:%M:%S"

_tier = 0


def configure_logging(tier: int = 0) -> int:
    """
    Attach the stderr handler (once) and set the detail tier.

    Out-of-range tiers are clamped to 0..MAX_TIER.

    Returns:
        The tier in effect
    """
    global _tier
    _tier = max(0, min(int(tier), MAX_TIER))

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(_FORMAT, _DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if _tier >= 2 else logging.INFO)
    return _tier


def current_tier() -> int:
    return _tier


def log_prompts() -> bool:
    """True when descriptions and generated prompts should be logged (tier 1+)."""
    return _tier >= 1


def log_api_payloads(debug_api: bool = False) -> bool:
    """True when Gemini payloads and raw responses should be logged (tier 2 or debug_api)."""
    return debug_api or _tier >= 2


def tier_from_env() -> int:
    """Read STYLEPROMPT_VERBOSITY; anything other than 1 or 2 means tier 0."""
    raw = os.environ.get(VERBOSITY_ENV, "").strip()
    return int(raw) if raw in ("1", "2") else 0


def get_logger(name: str) -> logging.Logger:
    """Return a logger under ``styleprompt`` (module names are used as-is)."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
