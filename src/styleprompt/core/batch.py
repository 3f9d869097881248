"""
Batched, cancellable prompt generation runs.

A run fulfils a request for N prompts with sequential calls of at most
``config.batch_size`` prompts each. Every call after the first receives the
prompts gathered so far so the model avoids repeating them. Results are
published to the session after each batch, and cancellation is checked
before each new batch starts.

iter_generation() yields BatchStarted/BatchCompleted events so a UI can render
progress as it happens; run_generation() drives the same loop with an optional
callback.
"""

import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from styleprompt.core.config import Config, get_config
from styleprompt.core.generation import GenerationRequest, GenerationResult, generate_prompts
from styleprompt.core.prompt import format_progress, select_new_prompts, validate_prompt_count
from styleprompt.core.session import GENERIC_FAILURE_MESSAGE, RunStatus, SessionState
from styleprompt.logging_config import get_logger, log_prompts
from styleprompt.utils.exceptions import CancellationError, StylepromptError, ValidationError

logger = get_logger(__name__)

GenerateFn = Callable[..., GenerationResult]


@dataclass(frozen=True)
class BatchStarted:
    """Emitted just before a batch call is issued."""

    batch_index: int
    batch_size: int
    total_batches: int
    accumulated_count: int
    target_count: int

    @property
    def progress_text(self) -> str:
        return f"Generating {self.accumulated_count + self.batch_size} of {self.target_count}..."


@dataclass(frozen=True)
class BatchCompleted:
    """Emitted after a batch's prompts were appended to the session."""

    batch_index: int
    total_batches: int
    new_prompts: tuple[str, ...]
    accumulated: tuple[str, ...]
    target_count: int

    @property
    def progress_text(self) -> str:
        return format_progress(len(self.accumulated), self.target_count)


BatchEvent = BatchStarted | BatchCompleted


def plan_batch_sizes(target_count: int, batch_size: int) -> list[int]:
    """
    Batch sizes for a run with no duplicate shortfall.

    >>> plan_batch_sizes(12, 5)
    [5, 5, 2]
    """
    total_batches = math.ceil(target_count / batch_size)
    sizes = []
    remaining = target_count
    for _ in range(total_batches):
        size = min(batch_size, remaining)
        sizes.append(size)
        remaining -= size
    return sizes


def _safe_cancel_check(cancel_check: Callable[[], bool] | None) -> bool:
    if cancel_check is None:
        return False
    try:
        return bool(cancel_check())
    except Exception:
        return False  # Don't let a buggy cancel_check break the run


def iter_generation(
    session: SessionState,
    config: Config | None = None,
    cancel_check: Callable[[], bool] | None = None,
    generate: GenerateFn | None = None,
) -> Iterator[BatchEvent]:
    """
    Run a generation for ``session.target_count`` prompts, yielding progress events.

    Input problems are raised before anything changes: the session keeps its
    previous results. Once the run starts, batch failures do not propagate;
    they end the run with ``RunStatus.FAILED`` and ``session.error`` set to the
    generic failure message. Cancellation ends it with ``RunStatus.CANCELLED``
    and no error. Prompts already gathered stay in ``session.prompts``.

    Args:
        session: Session providing image, credential, description and target count;
            updated in place as batches complete
        config: Optional config; if None, uses shared config from get_config()
        cancel_check: Optional callable returning True to stop the run. Polled before
            each batch and passed to the client for in-flight cancellation.
        generate: Batch call to use (defaults to generate_prompts)

    Yields:
        BatchStarted before each call and BatchCompleted after it

    Raises:
        MissingInputError: If the image or credential is missing
        ValidationError: If the target count is invalid or a run is already active
    """
    cfg = config or get_config()
    generate = generate or generate_prompts

    session.check_ready()
    if session.is_running:
        raise ValidationError("A generation run is already in progress.", field="run")
    target = validate_prompt_count(
        session.target_count, cfg.max_prompt_count, field="target_count"
    )
    image = session.image
    assert image is not None

    sizes = plan_batch_sizes(target, cfg.batch_size)
    total_batches = len(sizes)
    session.begin_run()
    logger.info(
        "Run started target=%d batches=%d image=%s",
        target,
        total_batches,
        image.sha256[:12],
    )

    accumulated: list[str] = []
    try:
        for index in range(total_batches):
            if _safe_cancel_check(cancel_check):
                logger.info("Run cancelled before batch %d", index + 1)
                session.finish(RunStatus.CANCELLED)
                return

            remaining = target - len(accumulated)
            if remaining <= 0:
                break
            batch_size = min(cfg.batch_size, remaining)

            started = BatchStarted(index, batch_size, total_batches, len(accumulated), target)
            session.progress = started.progress_text
            yield started

            request = GenerationRequest.from_payload(
                image,
                batch_size,
                # The first request stays minimal: no exclusion list at all
                excluded_prompts=list(accumulated) if index > 0 else None,
                description=session.description,
            )
            result = generate(request, session.credential, config=cfg, cancel_check=cancel_check)

            if index == 0:
                session.set_identification(result.subject, result.style)
                logger.info("Identified subject=%r style=%r", result.subject, result.style)

            new_prompts = select_new_prompts(result.prompts, accumulated, batch_size)
            if len(new_prompts) < batch_size:
                logger.warning(
                    "Batch %d returned %d usable prompts, expected %d",
                    index + 1,
                    len(new_prompts),
                    batch_size,
                )
            accumulated.extend(new_prompts)
            session.prompts = list(accumulated)
            session.progress = format_progress(len(accumulated), target)
            logger.info("Batch %d/%d done: %s", index + 1, total_batches, session.progress)
            if log_prompts():
                for prompt in new_prompts:
                    logger.info("Prompt: %s", prompt)

            yield BatchCompleted(
                index, total_batches, tuple(new_prompts), tuple(accumulated), target
            )
    except CancellationError:
        logger.info("Run cancelled during a batch; %d prompts kept", len(accumulated))
        session.finish(RunStatus.CANCELLED)
        return
    except StylepromptError as e:
        # A failure that surfaces after the user pressed stop counts as cancellation
        if _safe_cancel_check(cancel_check):
            logger.info("Run cancelled (%s); %d prompts kept", type(e).__name__, len(accumulated))
            session.finish(RunStatus.CANCELLED)
            return
        logger.error(
            "Run failed after %d prompts: %s: %s", len(accumulated), type(e).__name__, e
        )
        session.finish(RunStatus.FAILED, GENERIC_FAILURE_MESSAGE)
        return
    except GeneratorExit:
        # Consumer stopped iterating (e.g. the browser went away)
        session.finish(RunStatus.CANCELLED)
        raise
    except Exception:
        session.finish(RunStatus.FAILED, GENERIC_FAILURE_MESSAGE)
        raise

    session.finish(RunStatus.SUCCEEDED)
    logger.info("Run succeeded with %d of %d prompts", len(accumulated), target)


def run_generation(
    session: SessionState,
    config: Config | None = None,
    cancel_check: Callable[[], bool] | None = None,
    generate: GenerateFn | None = None,
    on_event: Callable[[BatchEvent], None] | None = None,
) -> RunStatus:
    """
    Run a generation to its terminal status, calling ``on_event`` for each event.

    Returns:
        The run's terminal status (also stored in ``session.run_status``)

    Raises:
        MissingInputError: If the image or credential is missing
        ValidationError: If the target count is invalid or a run is already active
    """
    events = iter_generation(session, config=config, cancel_check=cancel_check, generate=generate)
    for event in events:
        if on_event is not None:
            on_event(event)
    return session.run_status
