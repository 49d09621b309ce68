"""
Render Orchestrator

Runs one render job end to end:

    Received -> Validated -> ConfigExtracted -> ProjectSynthesized
             -> Bundled -> CompositionSelected -> Rendered -> Delivered

with Failed reachable from every stage before Delivered. There are no
retries; a failed job is reported failed.

Resource ownership per job:
- temp/<job_id>.tsx       removed on every exit path (success included)
- outputs/<job_id>*.mp4   removed on failure, left for the sweep on success
                          (it is the response payload)
- temp project directory  removed on every exit path

All of it is released in a single finally block, so cancellation and
unexpected exceptions get the same cleanup as handled failures.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

import aiofiles

from ..core.config import Settings, get_settings
from ..core.exceptions import RenderError, RenderPipelineError
from ..core.storage import (
    job_output_path,
    job_source_path,
    output_filename_for,
    remove_file_quietly,
)
from ..schemas.render import CompositionConfig
from ..tasks.remotion_runner import RenderEngine
from .config_extractor import extract_composition_config
from .temp_project import TempProjectLayout, cleanup_temp_project, create_temp_project
from .validators import validate_source_text

logger = logging.getLogger(__name__)

VIDEO_MEDIA_TYPE = "video/mp4"


class JobStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    CONFIG_EXTRACTED = "config_extracted"
    PROJECT_SYNTHESIZED = "project_synthesized"
    BUNDLED = "bundled"
    COMPOSITION_SELECTED = "composition_selected"
    RENDERED = "rendered"
    DELIVERED = "delivered"
    FAILED = "failed"


TERMINAL_STAGES = {JobStage.DELIVERED, JobStage.FAILED}


@dataclass
class RenderJob:
    """Ephemeral state of one request's passage through the pipeline."""

    id: str
    source_path: Path
    output_path: Path
    output_filename: str
    config: Optional[CompositionConfig] = None
    temp_project: Optional[TempProjectLayout] = None
    stage: JobStage = JobStage.RECEIVED
    history: List[JobStage] = field(default_factory=lambda: [JobStage.RECEIVED])

    def advance(self, stage: JobStage) -> None:
        if self.stage in TERMINAL_STAGES:
            raise RuntimeError(f"Job {self.id} already {self.stage.value}")
        self.stage = stage
        self.history.append(stage)


@dataclass(frozen=True)
class RenderResult:
    """A delivered video."""

    job_id: str
    filename: str
    content: bytes
    output_path: Path
    config: CompositionConfig
    media_type: str = VIDEO_MEDIA_TYPE


class RenderOrchestrator:
    """
    Sequences extraction, project synthesis and the external engine calls for
    each submitted TSX source.

    Usage:
        orchestrator = RenderOrchestrator(engine=RemotionCliEngine(settings), settings=settings)
        result = await orchestrator.submit(tsx_source, filename="intro.mp4")
    """

    def __init__(self, engine: RenderEngine, settings: Optional[Settings] = None):
        self.engine = engine
        self.settings = settings or get_settings()

    @property
    def resolution_roots(self) -> List[Path]:
        return [self.settings.node_modules_dir]

    def create_job(self, filename: Optional[str] = None) -> RenderJob:
        job_id = str(uuid4())
        output_filename = output_filename_for(job_id, filename)
        return RenderJob(
            id=job_id,
            source_path=job_source_path(job_id, self.settings),
            output_path=job_output_path(job_id, output_filename, self.settings),
            output_filename=output_filename,
        )

    async def submit(self, source_text: object, filename: Optional[str] = None) -> RenderResult:
        """
        Validate and render a TSX source.

        Raises:
            ValidationError: Missing or oversized source (nothing written to disk)
            RenderPipelineError: Any later stage failure, with job_id set
        """
        source_text = validate_source_text(source_text, self.settings.max_source_size)
        job = self.create_job(filename)
        job.advance(JobStage.VALIDATED)
        return await self.run_job(job, source_text)

    async def run_job(self, job: RenderJob, source_text: str) -> RenderResult:
        delivered = False
        try:
            job.source_path.parent.mkdir(parents=True, exist_ok=True)
            job.output_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(job.source_path, "w", encoding="utf-8") as f:
                await f.write(source_text)
            logger.info(f"[{job.id}] TSX file created")

            job.config = extract_composition_config(source_text, job.source_path.stem)
            job.advance(JobStage.CONFIG_EXTRACTED)
            logger.info(f"[{job.id}] Composition config extracted: {job.config.model_dump(by_alias=True)}")

            await self.engine.ensure_browser()
            logger.info(f"[{job.id}] Browser ready")

            job.temp_project = await asyncio.to_thread(
                create_temp_project,
                job.source_path,
                job.config,
                self.resolution_roots,
                root_dir=self.settings.project_root_dir,
                prefix=self.settings.project_dir_prefix,
            )
            job.advance(JobStage.PROJECT_SYNTHESIZED)
            logger.info(f"[{job.id}] Temporary project created at {job.temp_project.root}")

            bundle_location = await self.engine.bundle(job.temp_project.entry_point, self.resolution_roots)
            job.advance(JobStage.BUNDLED)
            logger.info(f"[{job.id}] Bundle complete")

            composition = await self.engine.select_composition(bundle_location, job.config.id)
            job.advance(JobStage.COMPOSITION_SELECTED)
            logger.info(f"[{job.id}] Composition selected: {composition.id}")

            await self.engine.render(
                composition.with_overrides(job.config),
                bundle_location,
                job.output_path,
                codec=self.settings.render_codec,
            )
            job.advance(JobStage.RENDERED)
            logger.info(f"[{job.id}] Render complete: {job.output_path}")

            content = await self._read_output(job)
            job.advance(JobStage.DELIVERED)
            delivered = True

            return RenderResult(
                job_id=job.id,
                filename=job.output_filename,
                content=content,
                output_path=job.output_path,
                config=job.config,
            )

        except RenderPipelineError as e:
            e.job_id = e.job_id or job.id
            self._log_failure(job, e)
            raise

        except Exception as e:
            self._log_failure(job, e)
            raise RenderError(str(e) or type(e).__name__, job_id=job.id) from e

        finally:
            if not delivered and job.stage not in TERMINAL_STAGES:
                job.advance(JobStage.FAILED)
            await asyncio.to_thread(self._release_resources, job, delivered)

    def _release_resources(self, job: RenderJob, delivered: bool) -> None:
        """Delete the job's source, its temp project and, unless delivered, its output."""
        remove_file_quietly(job.source_path, "job source")
        if not delivered:
            remove_file_quietly(job.output_path, "job output")
        if job.temp_project is not None:
            cleanup_temp_project(job.temp_project)

    async def _read_output(self, job: RenderJob) -> bytes:
        if not job.output_path.exists():
            raise RenderError("Output file was not created", job_id=job.id)

        async with aiofiles.open(job.output_path, "rb") as f:
            content = await f.read()

        if not content:
            raise RenderError("Output file is empty", job_id=job.id)
        return content

    def _log_failure(self, job: RenderJob, error: Exception) -> None:
        logger.error(f"[{job.id}] Render failed after {job.stage.value}: {error}")
