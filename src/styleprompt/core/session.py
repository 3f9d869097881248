"""
Per-user session state for styleprompt.

One SessionState is created per browser session with default fields and is
mutated in place by user actions and by each completed batch. Nothing here is
persisted; the credential is saved separately by the credential store.
"""

from dataclasses import dataclass, field
from enum import Enum

from styleprompt.core.config import PROMPTS_PER_BATCH
from styleprompt.core.image_input import ImagePayload
from styleprompt.utils.exceptions import MissingInputError, ValidationError

# Shown for every non-cancellation failure of a run
GENERIC_FAILURE_MESSAGE = "Failed to generate prompts. Check your API key or try again later."
MISSING_IMAGE_MESSAGE = "Please upload an image first."
MISSING_CREDENTIAL_MESSAGE = "Please enter your Google Gemini API key."


class RunStatus(str, Enum):
    """Lifecycle of a generation run."""

    IDLE = "idle"
    RUNNING = "running"
    CANCELLED = "cancelled"
    FAILED = "failed"
    SUCCEEDED = "succeeded"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.CANCELLED, RunStatus.FAILED, RunStatus.SUCCEEDED)


@dataclass
class SessionState:
    """Inputs and results of one user's session."""

    image: ImagePayload | None = None
    credential: str = field(default="", repr=False)
    description: str = ""
    target_count: int = PROMPTS_PER_BATCH
    prompts: list[str] = field(default_factory=list)
    subject: str | None = None
    style: str | None = None
    run_status: RunStatus = RunStatus.IDLE
    error: str | None = None
    progress: str = ""

    @property
    def is_running(self) -> bool:
        return self.run_status is RunStatus.RUNNING

    @property
    def has_identification(self) -> bool:
        return self.subject is not None and self.style is not None

    def can_generate(self) -> bool:
        """True when an image and a credential are present and no run is active."""
        return self.image is not None and bool(self.credential.strip()) and not self.is_running

    def set_image(self, image: ImagePayload | None) -> None:
        """Replace (or clear, with None) the image; previous results are discarded."""
        if self.is_running:
            raise ValidationError("Cannot change the image while prompts are generating.", "image")
        self.image = image
        self.reset_results()

    def clear_image(self) -> None:
        self.set_image(None)

    def reset_results(self) -> None:
        """Drop prompts, labels, progress and error from the last run."""
        self.prompts = []
        self.subject = None
        self.style = None
        self.error = None
        self.progress = ""
        if not self.is_running:
            self.run_status = RunStatus.IDLE

    def check_ready(self) -> None:
        """
        Raise MissingInputError if the image or the credential is missing.

        Raises:
            MissingInputError: With field "image" or "credential"
        """
        if self.image is None:
            raise MissingInputError(MISSING_IMAGE_MESSAGE, field="image")
        if not self.credential or not self.credential.strip():
            raise MissingInputError(MISSING_CREDENTIAL_MESSAGE, field="credential")

    def begin_run(self) -> None:
        """Clear previous results and mark the session as running."""
        self.run_status = RunStatus.IDLE
        self.reset_results()
        self.run_status = RunStatus.RUNNING

    def set_identification(self, subject: str, style: str) -> None:
        """Record subject and style together."""
        self.subject = subject
        self.style = style

    def finish(self, status: RunStatus, error: str | None = None) -> None:
        """Move a run to a terminal status."""
        if not status.is_terminal:
            raise ValueError(f"{status} is not a terminal run status")
        self.run_status = status
        self.error = error
        self.progress = ""
