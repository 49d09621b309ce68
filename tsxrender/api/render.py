"""
Render API endpoint.

POST /render
    Body: {"tsx": "...tsx code...", "filename": "output.mp4"}
    Returns: the MP4 as an attachment, or {error, message, details?, jobId?}
    with status 400 (validation / config) or 500 (pipeline / render).
"""

import asyncio
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from tsxrender.api.deps import get_orchestrator
from tsxrender.schemas.render import RenderErrorResponse, RenderRequest
from tsxrender.services.render_orchestrator import RenderOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def content_disposition(filename: str, disposition_type: str = "attachment") -> str:
    """
    Content-Disposition value for a download.

    Names that survive URL quoting unchanged are sent as a plain quoted
    filename; anything else (non-ASCII, spaces, quotes) uses the RFC 6266
    `filename*` form, since header values must encode as latin-1.
    """
    quoted = quote(filename)
    if quoted != filename:
        return f"{disposition_type}; filename*=utf-8''{quoted}"
    return f'{disposition_type}; filename="{filename}"'


def _retrieve_detached_result(task: asyncio.Task) -> None:
    """Consume the outcome of a job whose caller went away."""
    if task.cancelled():
        return
    # Errors were already logged by the orchestrator
    task.exception()


@router.post(
    "/render",
    response_class=Response,
    responses={
        200: {"content": {"video/mp4": {}}, "description": "Rendered video"},
        400: {"model": RenderErrorResponse, "description": "Invalid input or composition config"},
        500: {"model": RenderErrorResponse, "description": "Render pipeline failure"},
    },
)
async def render_tsx(
    request: RenderRequest,
    orchestrator: RenderOrchestrator = Depends(get_orchestrator),
) -> Response:
    """
    Render TSX source to MP4.

    The job runs as its own task and is shielded from the request: if the
    client disconnects, rendering and cleanup still run to completion.
    """
    job = asyncio.ensure_future(orchestrator.submit(request.tsx, request.filename))
    job.add_done_callback(_retrieve_detached_result)

    result = await asyncio.shield(job)

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={
            "Content-Disposition": content_disposition(result.filename),
            "X-Job-Id": result.job_id,
        },
    )
