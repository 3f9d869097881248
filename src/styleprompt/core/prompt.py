"""
Instruction building and prompt list helpers for styleprompt.

This module assembles the instruction text sent to Gemini with the reference
image, validates prompt counts and descriptions, and formats generated prompts
for display and the clipboard.
"""

import re
from collections.abc import Iterable, Sequence

from styleprompt.core.prompts_loader import (
    get_analysis_template,
    get_continuation_template,
    get_description_template,
    get_final_template,
    get_generation_template,
)
from styleprompt.utils.exceptions import ValidationError

_WHITESPACE_RE = re.compile(r"\s+")


def validate_prompt_count(count: int, maximum: int | None = None, field: str = "count") -> int:
    """
    Validate a requested number of prompts.

    Args:
        count: Number of prompts requested
        maximum: Optional inclusive upper bound
        field: Field name reported in the ValidationError

    Returns:
        The count, unchanged

    Raises:
        ValidationError: If count is not a positive integer or exceeds maximum
    """
    # bool is an int subclass; True is not a count
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValidationError(f"Prompt count must be an integer, got {count!r}.", field=field)
    if count < 1:
        raise ValidationError(f"Prompt count must be positive, got {count}.", field=field)
    if maximum is not None and count > maximum:
        raise ValidationError(
            f"Prompt count must not exceed {maximum}, got {count}.", field=field
        )
    return count


def normalize_description(description: str | None) -> str | None:
    """Return the stripped description, or None when it is empty or missing."""
    if description is None:
        return None
    stripped = description.strip()
    return stripped or None


def build_instruction(
    count: int,
    existing_prompts: Sequence[str] | None = None,
    description: str | None = None,
) -> str:
    """
    Build the instruction text sent alongside the image.

    The text asks the model to identify the subject, analyse the style along
    line work, color palette, shading & texture and overall aesthetic, name the
    style, and generate exactly ``count`` prompts embedding those descriptors.

    Args:
        count: Number of prompts the model must return
        existing_prompts: Prompts already generated in this run; when non-empty the
            model is told not to duplicate them
        description: Optional user description that steers subject identification

    Returns:
        The full instruction text

    Raises:
        ValidationError: If count is not a positive integer
        ConfigurationError: If the bundled templates are missing or invalid
    """
    validate_prompt_count(count)

    description = normalize_description(description)
    description_instruction = (
        get_description_template().format(description=description) if description else ""
    )

    parts = [
        get_analysis_template().format(description_instruction=description_instruction).rstrip(),
        get_generation_template().format(count=count).rstrip(),
    ]
    if existing_prompts:
        listing = "\n".join(f"- {p}" for p in existing_prompts)
        parts.append(get_continuation_template().format(existing_prompts=listing).rstrip())
    parts.append(get_final_template().rstrip())
    return "\n".join(parts)


def prompt_key(prompt: str) -> str:
    """Comparison key for duplicate detection: case-folded with whitespace collapsed."""
    return _WHITESPACE_RE.sub(" ", prompt).strip().casefold()


def select_new_prompts(
    candidates: Iterable[str],
    existing: Iterable[str],
    limit: int,
) -> list[str]:
    """
    Pick at most ``limit`` prompts from candidates that are not already known.

    Empty prompts and duplicates (of ``existing`` or of earlier candidates) are
    dropped; order is preserved.
    """
    seen = {prompt_key(p) for p in existing}
    selected: list[str] = []
    for candidate in candidates:
        if len(selected) >= limit:
            break
        text = candidate.strip()
        if not text:
            continue
        key = prompt_key(text)
        if key in seen:
            continue
        seen.add(key)
        selected.append(text)
    return selected


def format_prompt_list(prompts: Sequence[str]) -> str:
    """
    Format prompts for "copy all": numbered lines separated by blank lines.

    >>> format_prompt_list(["a", "b"])
    '1. a\\n\\n2. b'
    """
    return "\n\n".join(f"{i}. {p}" for i, p in enumerate(prompts, start=1))


def format_progress(done: int, total: int) -> str:
    """Human-readable run progress, e.g. '10 of 25'."""
    return f"{done} of {total}"
