"""
tsxrender command-line entry point.

Usage:
    tsxrender serve [--host HOST] [--port PORT]
    tsxrender render Composition.tsx [-o out.mp4]
    tsxrender sweep
"""

import argparse
import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import Optional

from tsxrender.core.config import Settings, get_settings
from tsxrender.core.exceptions import RenderPipelineError
from tsxrender.core.log import configure_logging
from tsxrender.core.storage import ensure_directories
from tsxrender.services.reaper import ResourceReaper
from tsxrender.services.render_orchestrator import RenderOrchestrator
from tsxrender.services.validators import validate_output_path, validate_source_file
from tsxrender.tasks.remotion_runner import RemotionCliEngine

logger = logging.getLogger("tsxrender.cli")


def cmd_serve(settings: Settings, host: Optional[str], port: Optional[int]) -> int:
    import uvicorn

    uvicorn.run(
        "tsxrender.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level="debug" if settings.debug else "info",
    )
    return 0


async def _render_file(settings: Settings, source: Path, output: Optional[Path]) -> Path:
    orchestrator = RenderOrchestrator(engine=RemotionCliEngine(settings), settings=settings)
    result = await orchestrator.submit(
        source.read_text(encoding="utf-8"),
        filename=output.name if output else f"{source.stem}.mp4",
    )
    destination = output or source.with_suffix(".mp4")
    shutil.move(str(result.output_path), str(destination))
    return destination


def cmd_render(settings: Settings, source: str, output: Optional[str]) -> int:
    """
    Render one TSX file. Returns 0 on success, 1 on failure.
    """
    try:
        source_path = validate_source_file(source)
        output_path = validate_output_path(output) if output else None
        ensure_directories(settings)
        destination = asyncio.run(_render_file(settings, source_path, output_path))
    except RenderPipelineError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        if e.details:
            print(f"  - {e.details}", file=sys.stderr)
        return 1

    print(f"OK: {destination}")
    return 0


def cmd_sweep(settings: Settings) -> int:
    report = ResourceReaper(settings).sweep()
    for path in report.removed:
        print(f"  removed {path}")
    for error in report.errors:
        print(f"  - {error}", file=sys.stderr)
    print(f"OK: {len(report.removed)} removed, {report.kept} kept")
    return 1 if report.errors else 0


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="tsxrender: TSX to MP4 renderer")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve_parser = sub.add_parser("serve", help="Run the HTTP render API")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting)")

    render_parser = sub.add_parser("render", help="Render a TSX file to MP4")
    render_parser.add_argument("source", help="Path to the .tsx file")
    render_parser.add_argument("-o", "--output", default=None, help="Output .mp4 path (default: next to source)")

    sub.add_parser("sweep", help="Delete stale temp/output files once")

    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(debug=args.debug or settings.debug)

    if args.command == "serve":
        sys.exit(cmd_serve(settings, args.host, args.port))
    elif args.command == "render":
        sys.exit(cmd_render(settings, args.source, args.output))
    elif args.command == "sweep":
        sys.exit(cmd_sweep(settings))


if __name__ == "__main__":
    main()
