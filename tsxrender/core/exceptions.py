"""
Render pipeline error taxonomy.

Every stage failure inside a render job is raised as one of these and converted
to a structured JSON payload at the API boundary:

    {"error": ..., "message": ..., "details": ..., "jobId": ...}

ValidationError and ConfigExtractionError are client faults (400); everything
else is a server fault (500). CleanupError is only ever logged.
"""

from typing import Any, Optional


class RenderPipelineError(Exception):
    """Base class for errors raised while processing a render job."""

    error: str = "render_failed"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Any] = None,
        job_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        self.job_id = job_id

    def to_dict(self) -> dict:
        """Serialize to the public error payload (omitting empty fields)."""
        payload: dict = {"error": self.error, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        if self.job_id is not None:
            payload["jobId"] = self.job_id
        return payload


class ValidationError(RenderPipelineError):
    """Missing, malformed or oversized input."""

    error = "validation_error"
    status_code = 400


class ConfigExtractionError(RenderPipelineError):
    """Source text carries no recognizable compositionConfig export."""

    error = "invalid_composition_config"
    status_code = 400


class ProjectSynthesisError(RenderPipelineError):
    """The temporary host project could not be written to disk."""

    error = "project_synthesis_failed"


class BundleError(RenderPipelineError):
    """The external bundler failed."""

    error = "bundle_failed"


class RenderError(RenderPipelineError):
    """Composition selection, rendering or output delivery failed."""

    error = "render_failed"


class CleanupError(RenderPipelineError):
    """A best-effort cleanup step failed. Logged, never surfaced."""

    error = "cleanup_failed"
