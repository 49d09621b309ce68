"""
Shared test fixtures for the TSX render service.

Provides:
- Isolated settings (storage and temp project roots under tmp_path)
- FakeRenderEngine standing in for the Remotion CLI
- Orchestrator wired to the fake engine
- Async HTTP client against the FastAPI app
- Sample TSX sources
"""

import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
_test_storage_dir = tempfile.mkdtemp(prefix="tsxrender_test_")
os.environ["STORAGE_PATH"] = _test_storage_dir
os.environ["PROJECT_TEMP_ROOT"] = os.path.join(_test_storage_dir, "projects")

from tsxrender.api.deps import get_orchestrator
from tsxrender.core.config import Settings
from tsxrender.core.exceptions import BundleError, RenderError
from tsxrender.main import app
from tsxrender.schemas.render import CompositionInfo
from tsxrender.services.render_orchestrator import RenderOrchestrator


# =============================================================================
# Sample Sources
# =============================================================================

DEMO_TSX = """import React from 'react';
import { AbsoluteFill } from 'remotion';

export const compositionConfig = { id: 'demo', fps: 24, width: 640, height: 480, durationInSeconds: 2 };

const Demo: React.FC = () => {
  return <AbsoluteFill style={{ backgroundColor: 'white' }} />;
};

export default Demo;
"""

NAMED_EXPORT_TSX = """import React from 'react';

export const compositionConfig = {
  id: 'named-demo',
  durationInSeconds: 3,
  fps: 30,
  width: 1280,
  height: 720,
  defaultProps: { title: 'Hello' },
};

export const TitleCard: React.FC<{ title: string }> = ({ title }) => <h1>{title}</h1>;
"""

NO_CONFIG_TSX = """import React from 'react';

export default function Plain() {
  return <div />;
}
"""

FAKE_MP4 = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isomfake-video"


# =============================================================================
# Fake Engine
# =============================================================================


class FakeRenderEngine:
    """
    In-memory RenderEngine.

    Records every call and the synthesized project it was handed. fail_at
    names a stage ("ensure_browser", "bundle", "select", "render") that raises.
    """

    def __init__(
        self,
        fail_at: Optional[str] = None,
        output: bytes = FAKE_MP4,
        write_output: bool = True,
    ):
        self.fail_at = fail_at
        self.output = output
        self.write_output = write_output
        self.calls: List[str] = []
        self.browser_inits = 0
        self.project_roots: List[Path] = []
        self.root_tsx: Optional[str] = None
        self.remotion_config: Optional[str] = None
        self.resolution_roots: List[Path] = []
        self.rendered: Optional[CompositionInfo] = None
        self.output_paths: List[Path] = []

    async def ensure_browser(self) -> None:
        self.calls.append("ensure_browser")
        if self.fail_at == "ensure_browser":
            raise RenderError("Browser download failed")
        self.browser_inits += 1

    async def bundle(self, entry_point: Path, resolution_roots) -> str:
        self.calls.append("bundle")
        project_root = Path(entry_point).parent.parent
        self.project_roots.append(project_root)
        self.resolution_roots = list(resolution_roots)
        self.root_tsx = (Path(entry_point).parent / "Root.tsx").read_text(encoding="utf-8")
        self.remotion_config = (project_root / "remotion.config.ts").read_text(encoding="utf-8")
        if self.fail_at == "bundle":
            raise BundleError("Module not found: Error: Can't resolve 'remotion'")
        return str(project_root / "build")

    async def select_composition(self, serve_url: str, composition_id: str) -> CompositionInfo:
        self.calls.append("select")
        if self.fail_at == "select":
            raise RenderError(f"Could not find composition with ID {composition_id}")
        return CompositionInfo(id=composition_id, durationInFrames=1, fps=1, width=1, height=1)

    async def render(self, composition, serve_url, output_path, codec="h264") -> None:
        self.calls.append("render")
        self.rendered = composition
        self.output_paths.append(Path(output_path))
        if self.write_output:
            Path(output_path).write_bytes(self.output)
        if self.fail_at == "render":
            raise RenderError("Error: Failed to render frame 12")


# =============================================================================
# Settings / Orchestrator Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with every storage area under tmp_path."""
    return Settings(
        storage_path=str(tmp_path / "data"),
        project_temp_root=str(tmp_path / "projects"),
        node_project_dir=str(tmp_path / "node_project"),
        max_source_size=4096,
    )


@pytest.fixture
def project_root_dir(settings: Settings) -> Path:
    settings.project_root_dir.mkdir(parents=True, exist_ok=True)
    return settings.project_root_dir


@pytest.fixture
def fake_engine() -> FakeRenderEngine:
    return FakeRenderEngine()


@pytest.fixture
def orchestrator(settings: Settings, fake_engine: FakeRenderEngine, project_root_dir: Path) -> RenderOrchestrator:
    return RenderOrchestrator(engine=fake_engine, settings=settings)


@pytest.fixture
def make_orchestrator(settings: Settings, project_root_dir: Path):
    """Factory: orchestrator with a freshly configured FakeRenderEngine."""

    def _make(**engine_kwargs) -> RenderOrchestrator:
        return RenderOrchestrator(engine=FakeRenderEngine(**engine_kwargs), settings=settings)

    return _make


# =============================================================================
# Test Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def async_client(orchestrator: RenderOrchestrator) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for the FastAPI application.

    The orchestrator dependency is overridden to use the fake engine.
    """
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def demo_tsx() -> str:
    return DEMO_TSX


@pytest.fixture
def named_export_tsx() -> str:
    return NAMED_EXPORT_TSX


@pytest.fixture
def no_config_tsx() -> str:
    return NO_CONFIG_TSX


@pytest.fixture
def fake_mp4() -> bytes:
    return FAKE_MP4
