"""
Load instruction templates from the bundled prompts.yaml file.

Templates are defined in src/styleprompt/prompts.yaml and loaded once per process.
Add new keys there and access them via get_prompt() or the specific getters.
"""

import importlib.resources
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from styleprompt.utils.exceptions import ConfigurationError

# Module-level cache for parsed prompts
_prompts_data: dict[str, Any] | None = None


class AnalysisPrompt(BaseModel):
    """Schema for the subject/style analysis section."""

    template: str = Field(..., min_length=1, description="Must contain {description_instruction}")
    description: str = Field(..., min_length=1, description="Must contain {description}")


class GenerationPrompt(BaseModel):
    """Schema for the prompt generation section."""

    template: str = Field(..., min_length=1, description="Must contain {count}")
    continuation: str = Field(..., min_length=1, description="Must contain {existing_prompts}")
    final: str = Field(..., min_length=1)


class PromptsSchema(BaseModel):
    """Schema for prompts.yaml configuration file."""

    model_config = {"extra": "allow"}

    analysis: AnalysisPrompt
    generation: GenerationPrompt


# (section, key, placeholder) triples checked by the getters
_REQUIRED_PLACEHOLDERS = (
    ("analysis", "template", "{description_instruction}"),
    ("analysis", "description", "{description}"),
    ("generation", "template", "{count}"),
    ("generation", "continuation", "{existing_prompts}"),
)


def _load_prompts() -> dict[str, Any]:
    """Load and parse prompts.yaml from the package. Cached after first call.

    Returns:
        Dictionary of prompt data.

    Raises:
        ConfigurationError: If YAML is missing, malformed, or fails validation.
    """
    global _prompts_data
    if _prompts_data is not None:
        return _prompts_data

    try:
        with (
            importlib.resources.files("styleprompt")
            .joinpath("prompts.yaml")
            .open(encoding="utf-8") as f
        ):
            raw = f.read()
    except FileNotFoundError as e:
        raise ConfigurationError(
            "prompts.yaml not found. This file is required and should be bundled with the package."
        ) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse prompts.yaml: {e}. Check YAML syntax and formatting."
        ) from e

    if data is None:
        raise ConfigurationError(
            "prompts.yaml is empty. Expected 'analysis' and 'generation' sections."
        )

    try:
        PromptsSchema(**data)
    except ValidationError as e:
        errors = "\n".join(
            [f"  - {'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        )
        raise ConfigurationError(
            f"Invalid prompts.yaml structure:\n{errors}\n"
            "Expected 'analysis' (template, description) and "
            "'generation' (template, continuation, final) sections."
        ) from e

    _prompts_data = data
    return _prompts_data


def get_prompt(key: str, subkey: str | None = None) -> str | None:
    """
    Get a prompt string from prompts.yaml.

    Args:
        key: Top-level key (e.g. "analysis").
        subkey: Optional subkey (e.g. "template") for nested value.

    Returns:
        The prompt string, or None if not found.
    """
    data = _load_prompts()
    value = data.get(key)
    if value is None:
        return None
    if subkey is not None:
        value = value.get(subkey) if isinstance(value, dict) else None
    return value if isinstance(value, str) else None


def _required(key: str, subkey: str) -> str:
    template = get_prompt(key, subkey)
    if not template:
        raise ConfigurationError(f"{key}.{subkey} not found in prompts.yaml. This key is required.")
    for section, name, placeholder in _REQUIRED_PLACEHOLDERS:
        if (section, name) == (key, subkey) and placeholder not in template:
            raise ConfigurationError(f"{key}.{subkey} must contain {placeholder} placeholder.")
    return template


def get_analysis_template() -> str:
    """Return the subject/style analysis instructions (contains {description_instruction})."""
    return _required("analysis", "template")


def get_description_template() -> str:
    """Return the sentence that injects the user's description (contains {description})."""
    return _required("analysis", "description")


def get_generation_template() -> str:
    """Return the prompt generation instructions (contains {count})."""
    return _required("generation", "template")


def get_continuation_template() -> str:
    """Return the duplicate-avoidance instructions (contains {existing_prompts})."""
    return _required("generation", "continuation")


def get_final_template() -> str:
    """Return the closing instruction asking for the JSON object only."""
    return _required("generation", "final")
