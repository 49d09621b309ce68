from .render import (
    CompositionConfig,
    CompositionInfo,
    ExportStyle,
    HealthResponse,
    RenderErrorResponse,
    RenderRequest,
)

__all__ = [
    "CompositionConfig",
    "CompositionInfo",
    "ExportStyle",
    "HealthResponse",
    "RenderErrorResponse",
    "RenderRequest",
]
