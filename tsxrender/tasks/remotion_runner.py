"""
Remotion Runner

Adapter between the render orchestrator and the external Remotion toolchain.
Each collaborator is reached through the Remotion CLI, run as an asyncio
subprocess so a long bundle or render never blocks the event loop:

- remotion browser ensure      headless browser readiness (once per process)
- remotion bundle              webpack bundle of the temp project
- remotion compositions        composition lookup by id
- remotion render              MP4 output

Non-zero exits are raised as BundleError / RenderError carrying the tail of
the CLI's stderr.
"""

import asyncio
import logging
import os
import shlex
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Type, Union

from ..core.config import Settings
from ..core.exceptions import BundleError, RenderError, RenderPipelineError
from ..schemas.render import CompositionInfo

logger = logging.getLogger(__name__)

# Characters of collaborator stderr kept in error messages
STDERR_TAIL_CHARS = 2000


class RenderEngine(Protocol):
    """Contract of the external bundler / selector / renderer."""

    async def ensure_browser(self) -> None:
        ...

    async def bundle(self, entry_point: Path, resolution_roots: Sequence[Path]) -> str:
        ...

    async def select_composition(self, serve_url: str, composition_id: str) -> CompositionInfo:
        ...

    async def render(
        self,
        composition: CompositionInfo,
        serve_url: str,
        output_path: Path,
        codec: str = "h264",
    ) -> None:
        ...


async def run_command(
    cmd: List[str],
    *,
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[dict] = None,
    timeout_seconds: Optional[int] = None,
    error_cls: Type[RenderPipelineError] = RenderError,
) -> str:
    """
    Run a CLI command and return its stdout.

    Raises:
        error_cls: If the command cannot start, exits non-zero or times out
    """
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(cwd) if cwd else None,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise error_cls(f"Failed to start {cmd[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"{cmd[0]} exceeded timeout of {timeout_seconds}s, killing")
        process.kill()
        await process.wait()
        raise error_cls(f"{' '.join(cmd[:3])} exceeded timeout of {timeout_seconds} seconds")

    if process.returncode != 0:
        stderr_text = stderr.decode("utf-8", errors="replace").strip()
        message = f"{' '.join(cmd[:3])} failed with code {process.returncode}"
        if stderr_text:
            message += f": {stderr_text[-STDERR_TAIL_CHARS:]}"
        logger.error(message)
        raise error_cls(message)

    return stdout.decode("utf-8", errors="replace")


class RemotionCliEngine:
    """
    RenderEngine backed by the Remotion CLI of a local Node project.

    The CLI runs with settings.node_project_dir as its working directory, so
    `npx remotion` resolves the project's own remotion install.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.command = shlex.split(settings.remotion_command)
        self.cwd = Path(settings.node_project_dir).resolve()
        self._browser_ready = False
        self._browser_lock = asyncio.Lock()

    @property
    def browser_ready(self) -> bool:
        return self._browser_ready

    def _log_flag(self) -> str:
        return f"--log={self.settings.engine_log_level}"

    async def _run(self, args: List[str], error_cls: Type[RenderPipelineError], env: Optional[dict] = None) -> str:
        return await run_command(
            self.command + args,
            cwd=self.cwd,
            env=env,
            timeout_seconds=self.settings.engine_timeout_seconds,
            error_cls=error_cls,
        )

    async def ensure_browser(self) -> None:
        """Download/verify the headless browser once; later calls are no-ops."""
        if self._browser_ready:
            return
        async with self._browser_lock:
            # Another job may have finished initialization while we waited
            if self._browser_ready:
                return
            await self._run(["browser", "ensure", self._log_flag()], RenderError)
            self._browser_ready = True
            logger.info("Headless browser ready")

    async def bundle(self, entry_point: Path, resolution_roots: Sequence[Path]) -> str:
        """
        Bundle the temp project; the bundle lives inside the project directory
        so it is removed together with it.
        """
        project_root = Path(entry_point).parent.parent
        out_dir = project_root / "build"
        config_file = project_root / "remotion.config.ts"

        env = dict(os.environ)
        node_paths = [str(root) for root in resolution_roots]
        if env.get("NODE_PATH"):
            node_paths.append(env["NODE_PATH"])
        if node_paths:
            env["NODE_PATH"] = os.pathsep.join(node_paths)

        args = ["bundle", str(entry_point), f"--out-dir={out_dir}", self._log_flag()]
        if config_file.exists():
            args.append(f"--config={config_file}")

        await self._run(args, BundleError, env=env)
        return str(out_dir)

    async def select_composition(self, serve_url: str, composition_id: str) -> CompositionInfo:
        output = await self._run(["compositions", serve_url, "--quiet", self._log_flag()], RenderError)
        available = output.split()
        if composition_id not in available:
            raise RenderError(
                f"Could not find composition with ID {composition_id}. "
                f"The following compositions are available: {', '.join(available) or 'none'}"
            )
        return CompositionInfo(id=composition_id)

    async def render(
        self,
        composition: CompositionInfo,
        serve_url: str,
        output_path: Path,
        codec: str = "h264",
    ) -> None:
        args = [
            "render",
            serve_url,
            composition.id,
            str(output_path),
            f"--codec={codec}",
            "--overwrite",
            self._log_flag(),
        ]
        # fps has no CLI override; the synthesized Root.tsx already declares it
        if composition.duration_in_frames:
            args.append(f"--frames=0-{composition.duration_in_frames - 1}")
        if composition.width:
            args.append(f"--width={composition.width}")
        if composition.height:
            args.append(f"--height={composition.height}")

        await self._run(args, RenderError)
