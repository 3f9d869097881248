"""
Prompt generation: one structured model call per batch.

This module defines the request/result types, validates the structured
response returned by the model, and exposes generate_prompts(), the single
entry point used by the batch orchestrator.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from styleprompt.core.config import Config, get_config
from styleprompt.core.image_input import ImagePayload
from styleprompt.core.prompt import normalize_description, validate_prompt_count
from styleprompt.logging_config import get_logger
from styleprompt.utils.exceptions import (
    AuthenticationError,
    MalformedResponseError,
    ValidationError,
)

logger = get_logger(__name__)

# JSON field names of the structured response
FIELD_SUBJECT = "identifiedSubject"
FIELD_STYLE = "identifiedStyle"
FIELD_PROMPTS = "prompts"


@dataclass(frozen=True)
class GenerationRequest:
    """Everything one batch call sends to the model. Built fresh for every batch."""

    image_bytes: bytes = field(repr=False)
    mime_type: str
    requested_count: int
    excluded_prompts: tuple[str, ...] = ()
    description: str | None = None

    @classmethod
    def from_payload(
        cls,
        image: ImagePayload,
        requested_count: int,
        excluded_prompts: Sequence[str] | None = None,
        description: str | None = None,
    ) -> "GenerationRequest":
        return cls(
            image_bytes=image.data,
            mime_type=image.mime_type,
            requested_count=requested_count,
            excluded_prompts=tuple(excluded_prompts or ()),
            description=normalize_description(description),
        )


@dataclass(frozen=True)
class GenerationResult:
    """Result of one batch call."""

    subject: str
    style: str
    prompts: list[str]
    generation_time: float = 0.0  # Time taken in seconds
    model_used: str = ""


class StructuredPrompts(BaseModel):
    """Schema the model's JSON answer must satisfy."""

    model_config = ConfigDict(strict=True, str_strip_whitespace=True, extra="ignore")

    identifiedSubject: str = Field(..., min_length=1)
    identifiedStyle: str = Field(..., min_length=1)
    prompts: list[str]


def response_schema(count: int) -> dict[str, Any]:
    """JSON schema sent as the model's responseSchema for a batch of ``count`` prompts."""
    return {
        "type": "OBJECT",
        "properties": {
            FIELD_SUBJECT: {
                "type": "STRING",
                "description": "The main subject identified in the image.",
            },
            FIELD_STYLE: {
                "type": "STRING",
                "description": "The name of the identified artistic style.",
            },
            FIELD_PROMPTS: {
                "type": "ARRAY",
                "description": (
                    f"A list of {count} creative image prompts that are thematically related "
                    "to the subject and explicitly include the identified style characteristics."
                ),
                "items": {"type": "STRING"},
            },
        },
        "required": [FIELD_SUBJECT, FIELD_STYLE, FIELD_PROMPTS],
        "propertyOrdering": [FIELD_SUBJECT, FIELD_STYLE, FIELD_PROMPTS],
    }


def parse_structured_response(
    data: Any,
    raw: str = "",
    generation_time: float = 0.0,
    model: str = "",
) -> GenerationResult:
    """
    Validate a decoded JSON answer and convert it to a GenerationResult.

    Args:
        data: Decoded JSON value returned by the model
        raw: Raw response text, kept on the error for debugging
        generation_time: Seconds the call took
        model: Model that produced the answer

    Raises:
        MalformedResponseError: If any required field is missing, empty or of the wrong type
    """
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(data).__name__}.", response=raw
        )
    try:
        parsed = StructuredPrompts.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise MalformedResponseError(
            f"Response does not match the prompt schema ({problems}).", response=raw
        ) from e
    return GenerationResult(
        subject=parsed.identifiedSubject,
        style=parsed.identifiedStyle,
        prompts=list(parsed.prompts),
        generation_time=generation_time,
        model_used=model,
    )


def generate_prompts(
    request: GenerationRequest,
    credential: str,
    model: str | None = None,
    timeout: int | None = None,
    config: Config | None = None,
    cancel_check: Callable[[], bool] | None = None,
) -> GenerationResult:
    """
    Generate style-matched prompts for one batch.

    Args:
        request: Image, count, exclusions and optional description for this batch
        credential: Gemini API key; must be non-empty
        model: Model id (defaults to config value)
        timeout: Request timeout in seconds (defaults to config value)
        config: Optional config to use; if None, uses shared config from get_config()
        cancel_check: Optional callable returning True to cancel; polled while the
            request is in flight. Should return quickly and not raise.

    Returns:
        GenerationResult with subject, style and prompts

    Raises:
        AuthenticationError: If the credential is empty or rejected
        ValidationError: If the request is invalid
        ModelUnavailableError: If the service cannot serve the request
        MalformedResponseError: If the response does not match the schema
        NetworkError: If a transport error occurs (RequestTimeoutError on timeout)
        CancellationError: If cancel_check returned True
    """
    if not credential or not credential.strip():
        raise AuthenticationError("Gemini API key is missing.")

    config = config or get_config()
    validate_prompt_count(
        request.requested_count, config.max_prompt_count, field="requested_count"
    )
    if not request.image_bytes:
        raise ValidationError("Image data is empty", field="image")

    if model is None:
        model = config.model
    if timeout is None:
        timeout = config.request_timeout

    from styleprompt.core.providers import get_provider

    return get_provider().generate(
        request,
        credential.strip(),
        model,
        timeout,
        config,
        cancel_check,
    )
