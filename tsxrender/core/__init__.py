# Core modules for the TSX render service
from .config import Settings, get_settings
from .exceptions import (
    BundleError,
    CleanupError,
    ConfigExtractionError,
    ProjectSynthesisError,
    RenderError,
    RenderPipelineError,
    ValidationError,
)
from .storage import (
    ensure_directories,
    get_storage_root,
    job_output_path,
    job_source_path,
    output_filename_for,
    remove_file_quietly,
    sanitize_filename,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "RenderPipelineError",
    "ValidationError",
    "ConfigExtractionError",
    "ProjectSynthesisError",
    "BundleError",
    "RenderError",
    "CleanupError",
    # Storage
    "ensure_directories",
    "get_storage_root",
    "job_output_path",
    "job_source_path",
    "output_filename_for",
    "remove_file_quietly",
    "sanitize_filename",
]
