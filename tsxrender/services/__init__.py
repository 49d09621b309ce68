"""
Render pipeline services.

- config_extractor: compositionConfig -> CompositionConfig
- export_style: how the component is exported
- temp_project: throwaway Remotion project around the user's file
- render_orchestrator: one job end to end, with cleanup
- reaper: periodic stale file sweep
"""

from .config_extractor import extract_composition_config, extract_composition_config_from_file
from .export_style import detect_export_style, detect_export_style_from_file
from .reaper import ResourceReaper, SweepReport, sweep_stale_files
from .render_orchestrator import JobStage, RenderJob, RenderOrchestrator, RenderResult
from .temp_project import TempProjectLayout, cleanup_temp_project, create_temp_project, remove_temp_project

__all__ = [
    "extract_composition_config",
    "extract_composition_config_from_file",
    "detect_export_style",
    "detect_export_style_from_file",
    "ResourceReaper",
    "SweepReport",
    "sweep_stale_files",
    "JobStage",
    "RenderJob",
    "RenderOrchestrator",
    "RenderResult",
    "TempProjectLayout",
    "cleanup_temp_project",
    "create_temp_project",
    "remove_temp_project",
]
