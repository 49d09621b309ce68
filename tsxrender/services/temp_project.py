"""
Temporary Project Synthesizer.

Materializes a throwaway Remotion project around a user's TSX file:

    <root>/
        src/index.ts         registerRoot(Root)
        src/Root.tsx         one <Composition> wrapping the user's component
        tsconfig.json
        remotion.config.ts   output options + webpack module resolution roots

The user's file is imported in place by absolute path and never modified.
Removing the directory is the caller's job (see cleanup_temp_project).
"""

import json
import logging
import shutil
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from ..core.exceptions import CleanupError, ProjectSynthesisError
from ..schemas.render import CompositionConfig, ExportStyle
from .export_style import detect_export_style

logger = logging.getLogger(__name__)

COMPONENT_ALIAS = "UserComponent"
DEFAULT_DIR_PREFIX = "remotion-render-"

TSCONFIG = {
    "compilerOptions": {
        "target": "ES2020",
        "module": "commonjs",
        "lib": ["ES2020", "DOM"],
        "jsx": "react-jsx",
        "strict": True,
        "esModuleInterop": True,
        "skipLibCheck": True,
        "forceConsistentCasingInFileNames": True,
        "resolveJsonModule": True,
        "moduleResolution": "node",
    },
    "include": ["src/**/*"],
}

INDEX_TS = """import { registerRoot } from 'remotion';
import { Root } from './Root';

registerRoot(Root);
"""

ROOT_TSX_TEMPLATE = """import React from 'react';
import {{ Composition }} from 'remotion';
{import_statement}

export const Root: React.FC = () => {{
  return (
    <Composition
      id={{{id}}}
      component={{{component}}}
      durationInFrames={{{duration_in_frames}}}
      fps={{{fps}}}
      width={{{width}}}
      height={{{height}}}
      defaultProps={{{default_props}}}
    />
  );
}};
"""

REMOTION_CONFIG_TEMPLATE = """import {{ Config }} from '@remotion/cli/config';

Config.setVideoImageFormat('jpeg');
Config.setOverwriteOutput(true);

const resolutionRoots: string[] = {resolution_roots};

Config.overrideWebpackConfig((currentConfiguration) => ({{
  ...currentConfiguration,
  resolve: {{
    ...currentConfiguration.resolve,
    modules: [
      ...resolutionRoots,
      ...(currentConfiguration.resolve?.modules ?? ['node_modules']),
    ],
  }},
  resolveLoader: {{
    ...currentConfiguration.resolveLoader,
    modules: [
      ...resolutionRoots,
      ...(currentConfiguration.resolveLoader?.modules ?? ['node_modules']),
    ],
  }},
}}));
"""


@dataclass(frozen=True)
class TempProjectLayout:
    """Paths of one synthesized project."""

    root: Path

    @property
    def src_dir(self) -> Path:
        return self.root / "src"

    @property
    def entry_point(self) -> Path:
        return self.src_dir / "index.ts"

    @property
    def root_file(self) -> Path:
        return self.src_dir / "Root.tsx"

    @property
    def tsconfig(self) -> Path:
        return self.root / "tsconfig.json"

    @property
    def remotion_config(self) -> Path:
        return self.root / "remotion.config.ts"


def to_import_path(source_path: Union[str, Path]) -> str:
    """Module specifier for the user's file, always with forward slashes."""
    return str(source_path).replace("\\", "/")


def build_import_statement(source_path: Union[str, Path], export_style: ExportStyle) -> str:
    specifier = json.dumps(to_import_path(source_path))
    if export_style.kind == "default":
        return f"import {COMPONENT_ALIAS} from {specifier};"
    return f"import {{ {export_style.name} as {COMPONENT_ALIAS} }} from {specifier};"


def render_root_tsx(import_statement: str, config: CompositionConfig) -> str:
    return ROOT_TSX_TEMPLATE.format(
        import_statement=import_statement,
        id=json.dumps(config.id),
        component=COMPONENT_ALIAS,
        duration_in_frames=config.duration_in_frames,
        fps=json.dumps(config.fps),
        width=config.width,
        height=config.height,
        default_props=json.dumps(config.default_props),
    )


def render_remotion_config(resolution_roots: Sequence[Union[str, Path]] = ()) -> str:
    roots = [to_import_path(root) for root in resolution_roots]
    return REMOTION_CONFIG_TEMPLATE.format(resolution_roots=json.dumps(roots))


def create_temp_project(
    source_path: Union[str, Path],
    config: CompositionConfig,
    resolution_roots: Iterable[Union[str, Path]] = (),
    root_dir: Optional[Union[str, Path]] = None,
    prefix: str = DEFAULT_DIR_PREFIX,
) -> TempProjectLayout:
    """
    Create a temporary Remotion project that imports the user's TSX file.

    Args:
        source_path: Absolute path to the user's TSX file
        config: Extracted composition config
        resolution_roots: node_modules directories the bundler should search
        root_dir: Parent for the project directory (default: OS temp dir)
        prefix: Directory name prefix

    Returns:
        TempProjectLayout of the new project

    Raises:
        ProjectSynthesisError: If reading the source or writing any file fails
    """
    source_path = Path(source_path)

    try:
        source_text = source_path.read_text(encoding="utf-8")
        export_style = detect_export_style(source_text, source_path.stem)

        if root_dir:
            Path(root_dir).mkdir(parents=True, exist_ok=True)
        # mkdtemp guarantees a fresh directory even when two jobs share a timestamp
        root = Path(
            tempfile.mkdtemp(
                prefix=f"{prefix}{int(time.time() * 1000)}-",
                dir=str(root_dir) if root_dir else None,
            )
        )
        layout = TempProjectLayout(root=root)
        layout.src_dir.mkdir(parents=True, exist_ok=True)

        import_statement = build_import_statement(source_path, export_style)

        layout.entry_point.write_text(INDEX_TS, encoding="utf-8")
        layout.root_file.write_text(render_root_tsx(import_statement, config), encoding="utf-8")
        layout.tsconfig.write_text(json.dumps(TSCONFIG, indent=2), encoding="utf-8")
        layout.remotion_config.write_text(
            render_remotion_config(list(resolution_roots)), encoding="utf-8"
        )
    except OSError as e:
        raise ProjectSynthesisError(
            f"Failed to create temporary project: {e}",
            details={"source": str(source_path)},
        ) from e

    logger.debug(
        f"Temporary project {root} created for {source_path.name} "
        f"(export={export_style.kind}, frames={config.duration_in_frames})"
    )
    return layout


def remove_temp_project(project: Union[TempProjectLayout, str, Path, None]) -> bool:
    """
    Remove a temporary project directory.

    Returns:
        True if the directory was removed, False if there was nothing to remove

    Raises:
        CleanupError: If the tree could not be deleted
    """
    if project is None:
        return False
    root = project.root if isinstance(project, TempProjectLayout) else Path(project)
    if not root.exists():
        return False

    try:
        shutil.rmtree(root)
    except OSError as e:
        raise CleanupError(
            f"Failed to remove temporary project {root}: {e}",
            details={"path": str(root)},
        ) from e
    return True


def cleanup_temp_project(project: Union[TempProjectLayout, str, Path, None]) -> bool:
    """
    Best-effort remove_temp_project.

    Failures (e.g. file locks held by a lingering bundler) are logged, never
    raised.
    """
    try:
        return remove_temp_project(project)
    except CleanupError as e:
        logger.warning(e.message)
        return False
