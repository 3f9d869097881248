"""
Gemini prompt generation provider.

Handles HTTP communication with the Gemini generateContent endpoint: sends the
reference image inline with the instruction text, requests a JSON answer that
follows a fixed schema, and maps failures to styleprompt exceptions.
"""

import base64
import json
import threading
import time
from collections.abc import Callable
from typing import Any

import requests

from styleprompt.core.config import Config
from styleprompt.core.generation import (
    GenerationRequest,
    GenerationResult,
    parse_structured_response,
    response_schema,
)
from styleprompt.core.prompt import build_instruction
from styleprompt.logging_config import get_logger, log_api_payloads, log_prompts
from styleprompt.utils.exceptions import (
    AuthenticationError,
    CancellationError,
    MalformedResponseError,
    ModelUnavailableError,
    NetworkError,
    RequestTimeoutError,
)

logger = get_logger(__name__)

_PROMPT_LOG_MAX = 50_000
_DEBUG_TRUNCATE_THRESHOLD = 200
_DEBUG_NEVER_TRUNCATE_KEYS = frozenset({"text", "message"})
_CANCEL_POLL_INTERVAL = 0.25

# Markers Gemini puts in a 400 body when the key itself is bad
_INVALID_KEY_MARKERS = ("API_KEY_INVALID", "API key not valid")


def _truncate_image_data_for_log(obj: Any, parent_key: str | None = None) -> Any:
    """Recursively replace long base64 strings with placeholders for safe logging."""
    if isinstance(obj, dict):
        return {k: _truncate_image_data_for_log(v, k) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_truncate_image_data_for_log(v, None) for v in obj]
    if isinstance(obj, str) and len(obj) >= _DEBUG_TRUNCATE_THRESHOLD:
        if parent_key in _DEBUG_NEVER_TRUNCATE_KEYS:
            return obj
        return f"<string, {len(obj)} chars>"
    return obj


def _response_text(result: dict[str, Any], raw: str) -> str:
    """Extract the model's answer text from a generateContent response."""
    candidates = result.get("candidates") or []
    if not candidates:
        block_reason = (result.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise MalformedResponseError(
                f"The request was blocked by the model ({block_reason}).", response=raw
            )
        raise MalformedResponseError("No candidates in API response.", response=raw)

    candidate = candidates[0] or {}
    parts = (candidate.get("content") or {}).get("parts") or []
    # Thought summaries, when present, are not part of the answer
    text = "".join(
        p.get("text", "") for p in parts if isinstance(p, dict) and not p.get("thought")
    )
    if not text.strip():
        finish_reason = candidate.get("finishReason", "")
        raise MalformedResponseError(
            f"No text in API response (finishReason={finish_reason or 'unknown'}).",
            response=raw,
        )
    return text


class GeminiProvider:
    """Prompt generation provider for the Gemini API."""

    def _build_payload(self, request: GenerationRequest) -> dict[str, Any]:
        """Build the generateContent payload: image part, then instruction text."""
        instruction = build_instruction(
            request.requested_count,
            existing_prompts=request.excluded_prompts or None,
            description=request.description,
        )
        image_b64 = base64.b64encode(request.image_bytes).decode("ascii")
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inline_data": {"mime_type": request.mime_type, "data": image_b64}},
                        {"text": instruction},
                    ],
                }
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": response_schema(request.requested_count),
            },
        }

    def _raise_for_status(self, response: requests.Response, model: str) -> None:
        """Map non-200 responses to exceptions."""
        status = response.status_code
        if status == 200:
            return
        body = response.text
        if status in (401, 403) or (
            status == 400 and any(marker in body for marker in _INVALID_KEY_MARKERS)
        ):
            raise AuthenticationError(
                "Authentication failed. Please check your Gemini API key.",
                status_code=status,
                response=body,
            )
        if status == 404:
            raise ModelUnavailableError(
                f"Model not found or endpoint unavailable: {model}",
                status_code=404,
                response=body,
            )
        if status == 429:
            raise ModelUnavailableError(
                "Rate limit or quota exceeded. Please wait before making more requests.",
                status_code=429,
                response=body,
            )
        if status >= 500:
            raise ModelUnavailableError(
                f"Gemini service error: {status}",
                status_code=status,
                response=body,
            )
        # Anything else (e.g. 400 INVALID_ARGUMENT for an unsupported image type)
        # means the model will not serve this request
        raise ModelUnavailableError(
            f"Gemini rejected the request with status {status}: {body}",
            status_code=status,
            response=body,
        )

    def _parse_response(
        self,
        response: requests.Response,
        model: str,
        generation_time: float,
    ) -> GenerationResult:
        """Parse a 200 response into a GenerationResult. Raises MalformedResponseError."""
        try:
            result = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Failed to parse API response as JSON: {str(e)}",
                response=response.text,
            ) from e
        if not isinstance(result, dict):
            raise MalformedResponseError("Unexpected API response shape.", response=response.text)

        usage = result.get("usageMetadata") or {}
        if usage:
            logger.debug(
                "Token usage prompt=%s candidates=%s total=%s",
                usage.get("promptTokenCount"),
                usage.get("candidatesTokenCount"),
                usage.get("totalTokenCount"),
            )

        text = _response_text(result, response.text)
        try:
            data = json.loads(text)
        except ValueError as e:
            raise MalformedResponseError(
                f"Model answer is not valid JSON: {str(e)}", response=text
            ) from e
        return parse_structured_response(
            data, raw=text, generation_time=generation_time, model=model
        )

    def _do_request(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
        timeout: int,
        model: str,
        debug: bool,
    ) -> GenerationResult:
        """Perform HTTP POST and parse response. Maps status codes to exceptions."""
        logger.debug("API request url=%s model=%s timeout=%s", url, model, timeout)
        if debug:
            logger.info(
                "API request payload (image data truncated): %s",
                json.dumps(_truncate_image_data_for_log(payload), indent=2, default=str),
            )
        start_time = time.time()
        response = requests.post(url, headers=headers, json=payload, timeout=timeout)
        generation_time = time.time() - start_time
        logger.debug(
            "API response status=%s time=%.2fs",
            response.status_code,
            generation_time,
        )
        if debug:
            text = response.text
            if len(text) > 2000:
                text = text[:2000] + f"... <truncated, {len(response.text)} chars total>"
            logger.info("API response (raw text): %s", text)

        self._raise_for_status(response, model)
        return self._parse_response(response, model, generation_time)

    def _request_or_raise(
        self,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
        timeout: int,
        model: str,
        debug: bool,
    ) -> GenerationResult:
        """_do_request with requests exceptions mapped to NetworkError/RequestTimeoutError."""
        try:
            return self._do_request(url, headers, payload, timeout, model, debug)
        except requests.exceptions.Timeout as e:
            raise RequestTimeoutError(
                f"Request timed out after {timeout} seconds.", original_error=e
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(
                "Failed to connect to the Gemini API. Please check your internet connection.",
                original_error=e,
            ) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(
                f"Network error during API request: {str(e)}", original_error=e
            ) from e

    def generate(
        self,
        request: GenerationRequest,
        credential: str,
        model: str,
        timeout: int,
        config: Config,
        cancel_check: Callable[[], bool] | None,
    ) -> GenerationResult:
        """Generate one batch of prompts via the Gemini API."""
        if not credential:
            raise AuthenticationError("Gemini API key is missing.")
        debug_api = log_api_payloads(getattr(config, "debug_api", False))

        url = f"{config.gemini_base_url.rstrip('/')}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": credential,
            "Content-Type": "application/json",
        }
        payload = self._build_payload(request)

        logger.info(
            "Requesting prompts model=%s count=%d excluded=%d has_description=%s",
            model,
            request.requested_count,
            len(request.excluded_prompts),
            request.description is not None,
        )
        if log_prompts() and request.description:
            desc = request.description
            truncated = desc if len(desc) <= _PROMPT_LOG_MAX else desc[:_PROMPT_LOG_MAX] + "..."
            logger.info("Description: %s", truncated)

        if cancel_check is None:
            result = self._request_or_raise(url, headers, payload, timeout, model, debug_api)
            logger.info(
                "Received %d prompts in %.1fs model=%s",
                len(result.prompts),
                result.generation_time,
                result.model_used,
            )
            return result

        # Run with cancellation support: request in a thread, caller polls cancel_check.
        # A cancelled request is abandoned; its result is discarded.
        result_holder: list[GenerationResult | None] = [None]
        exc_holder: list[BaseException | None] = [None]

        def worker() -> None:
            try:
                result_holder[0] = self._request_or_raise(
                    url, headers, payload, timeout, model, debug_api
                )
            except BaseException as e:
                exc_holder[0] = e

        thread = threading.Thread(target=worker, daemon=True)
        thread.start()
        while True:
            thread.join(timeout=_CANCEL_POLL_INTERVAL)
            if not thread.is_alive():
                break
            try:
                cancelled = cancel_check()
            except Exception:
                cancelled = False  # Don't let a buggy cancel_check break the loop
            if cancelled:
                logger.info("Prompt request cancelled while in flight")
                raise CancellationError("Prompt generation was cancelled.")

        if exc_holder[0] is not None:
            raise exc_holder[0]
        assert result_holder[0] is not None
        result = result_holder[0]
        logger.info(
            "Received %d prompts in %.1fs model=%s",
            len(result.prompts),
            result.generation_time,
            result.model_used,
        )
        return result
