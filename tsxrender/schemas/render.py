"""
Pydantic schemas for the render pipeline.

Includes the per-job composition config and export style records, the
request/response models of the render API, and the composition metadata
returned by the external engine.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

PositiveFiniteFloat = Annotated[float, Field(gt=0, allow_inf_nan=False)]


# --- Pipeline Records ---


class CompositionConfig(BaseModel):
    """
    Composition parameters extracted from a TSX source file.

    Every numeric field is always populated; the extractor backfills defaults
    before this model is built.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Composition id")
    duration_in_seconds: Union[PositiveInt, PositiveFiniteFloat] = Field(
        ..., alias="durationInSeconds", description="Video length in seconds"
    )
    fps: Union[PositiveInt, PositiveFiniteFloat] = Field(..., description="Frame rate")
    width: PositiveInt = Field(..., description="Frame width in pixels")
    height: PositiveInt = Field(..., description="Frame height in pixels")
    default_props: Dict[str, Any] = Field(
        default_factory=dict,
        alias="defaultProps",
        description="Props passed to the component",
    )

    @property
    def duration_in_frames(self) -> int:
        """Total frame count, round(durationInSeconds * fps)."""
        return round(self.duration_in_seconds * self.fps)


class ExportStyle(BaseModel):
    """How the user's component is exported from its source file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["default", "named"]
    name: Optional[str] = None


class CompositionInfo(BaseModel):
    """Composition metadata reported by the external composition selector."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    duration_in_frames: Optional[int] = Field(None, alias="durationInFrames")
    fps: Optional[Union[int, float]] = None
    width: Optional[int] = None
    height: Optional[int] = None

    def with_overrides(self, config: CompositionConfig) -> "CompositionInfo":
        """Return a copy whose runtime parameters come from the job config."""
        return self.model_copy(
            update={
                "duration_in_frames": config.duration_in_frames,
                "fps": config.fps,
                "width": config.width,
                "height": config.height,
            }
        )


# --- Request Schemas ---


class RenderRequest(BaseModel):
    """Request to render a TSX component to MP4."""

    tsx: Optional[Any] = Field(
        None,
        description="TSX source exporting a component and a compositionConfig object",
    )
    filename: Optional[str] = Field(
        None,
        max_length=255,
        description="Attachment filename for the returned video (default: <jobId>.mp4)",
    )


# --- Response Schemas ---


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: Literal["ok"] = "ok"
    service: str
    version: str


class RenderErrorResponse(BaseModel):
    """Error payload returned by POST /render."""

    error: str = Field(..., description="Machine readable error code")
    message: str = Field(..., description="Human readable description")
    details: Optional[Any] = Field(None, description="Additional details")
    job_id: Optional[str] = Field(None, alias="jobId", description="Render job id")
