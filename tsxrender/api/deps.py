"""
Shared API dependencies.
"""

from fastapi import Request

from tsxrender.core.config import get_settings
from tsxrender.services.render_orchestrator import RenderOrchestrator
from tsxrender.tasks.remotion_runner import RemotionCliEngine


def get_orchestrator(request: Request) -> RenderOrchestrator:
    """
    Process-wide orchestrator.

    Created by the application lifespan; built lazily here when the app runs
    without lifespan events (e.g. under an ASGI test transport).
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        settings = get_settings()
        orchestrator = RenderOrchestrator(engine=RemotionCliEngine(settings), settings=settings)
        request.app.state.orchestrator = orchestrator
    return orchestrator
