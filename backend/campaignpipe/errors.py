"""
Error handling.

Exception hierarchy shared by the orchestrator, the stage executors and the
generation capabilities.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from campaignpipe.orchestrator.state import StageName


class CampaignPipelineError(Exception):
    """Base exception for all campaign pipeline errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        """
        Initialize pipeline error.

        Args:
            message: Human-readable error message
            code: Optional error code for categorization
        """
        self.message = message
        self.code = code
        super().__init__(self.message)


class ConfigurationError(CampaignPipelineError):
    """Missing or invalid credentials/settings."""
    pass


class PreconditionError(CampaignPipelineError):
    """Run rejected before any stage started; no state was mutated."""
    pass


class EmptyPromptError(PreconditionError):
    """Initial prompt is empty or whitespace-only."""

    def __init__(self, message: str = "Please enter a campaign idea."):
        super().__init__(message, code="EMPTY_PROMPT")


class PipelineAlreadyRunningError(PreconditionError):
    """A run is already in flight on this orchestrator."""

    def __init__(self, message: str = "A campaign run is already in progress."):
        super().__init__(message, code="ALREADY_RUNNING")


class StructuralInvariantError(CampaignPipelineError):
    """A completed stage's output lacks the shape the next stage needs."""

    def __init__(self, message: str):
        super().__init__(message, code="STRUCTURAL_INVARIANT")


class StageFailedError(CampaignPipelineError):
    """A stage's capability call raised; wraps the original exception."""

    def __init__(self, stage: "StageName", cause: BaseException):
        """
        Initialize stage failure.

        Args:
            stage: Stage that was working when the failure happened
            cause: Underlying exception
        """
        self.stage = stage
        self.cause = cause
        description = str(cause).strip()
        super().__init__(description, code="STAGE_FAILED")


class PollingTerminalError(CampaignPipelineError):
    """Long-running operation reached a state that cannot be retried."""
    pass


class VideoArtifactMissingError(PollingTerminalError):
    """Video operation finished without a downloadable artifact."""

    def __init__(
        self,
        message: str = "Video generation finished but no download link was provided.",
    ):
        super().__init__(message, code="ARTIFACT_MISSING")


class VideoContentFilteredError(PollingTerminalError):
    """Video output was removed by responsible-AI filtering."""

    def __init__(self, message: str = "Video was filtered by responsible AI checks."):
        super().__init__(message, code="CONTENT_FILTERED")


class VideoOperationError(PollingTerminalError):
    """Video operation finished with an error payload."""

    def __init__(self, message: str):
        super().__init__(message, code="OPERATION_FAILED")


class VideoDownloadError(PollingTerminalError):
    """Fetching the finished video returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, code="DOWNLOAD_FAILED")


class PollingTimeoutError(PollingTerminalError):
    """Operation did not finish within the configured number of polls."""

    def __init__(self, message: str):
        super().__init__(message, code="POLL_TIMEOUT")


class PipelineCancelledError(CampaignPipelineError):
    """Raised when the caller cancels an in-flight run."""

    def __init__(self, message: str = "Campaign cancelled."):
        super().__init__(message, code="CANCELLED")
