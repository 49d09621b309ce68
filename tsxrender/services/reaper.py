"""
Resource Reaper

Periodic sweep of the temp and output storage areas. Any regular file whose
modification time is older than the retention threshold is deleted.

In-flight jobs need no coordination with the sweep: their files are always
younger than the threshold for the lifetime of a job.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from ..core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    """Outcome of one sweep pass."""

    removed: List[Path] = field(default_factory=list)
    kept: int = 0
    errors: List[str] = field(default_factory=list)


def is_stale(path: Path, max_age_seconds: float, now: float) -> bool:
    return now - path.stat().st_mtime > max_age_seconds


def sweep_stale_files(
    directories: Iterable[Path],
    max_age_seconds: float = 60 * 60,
    now: Optional[float] = None,
) -> SweepReport:
    """
    Delete files older than max_age_seconds from each directory.

    Missing directories are skipped. A failure on one file is logged and the
    sweep moves on to the next.

    Args:
        directories: Storage areas to scan (non-recursive)
        max_age_seconds: Retention threshold
        now: Reference timestamp (defaults to time.time())

    Returns:
        SweepReport listing removed files and per-file errors
    """
    now = time.time() if now is None else now
    report = SweepReport()

    for directory in directories:
        directory = Path(directory)
        try:
            entries = list(directory.iterdir())
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.error(f"Cleanup error in {directory}: {e}")
            report.errors.append(f"{directory}: {e}")
            continue

        for path in entries:
            try:
                if not path.is_file():
                    continue
                if is_stale(path, max_age_seconds, now):
                    path.unlink()
                    report.removed.append(path)
                else:
                    report.kept += 1
            except FileNotFoundError:
                # Removed by its job (or another sweep) since listing
                continue
            except OSError as e:
                logger.warning(f"Failed to remove stale file {path}: {e}")
                report.errors.append(f"{path}: {e}")

    if report.removed:
        logger.info(f"Stale file sweep removed {len(report.removed)} file(s)")
    return report


class ResourceReaper:
    """
    Runs sweep_stale_files over the temp and output areas on a fixed period.

    start() schedules the loop on the running event loop; stop() cancels it.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._task: Optional[asyncio.Task] = None

    @property
    def directories(self) -> List[Path]:
        return [self.settings.temp_dir, self.settings.output_dir]

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self) -> SweepReport:
        return sweep_stale_files(self.directories, self.settings.stale_file_max_age_seconds)

    async def run_forever(self) -> None:
        interval = self.settings.sweep_interval_seconds
        logger.info(f"Stale file sweep every {interval}s over {', '.join(map(str, self.directories))}")
        while True:
            await asyncio.sleep(interval)
            try:
                await asyncio.to_thread(self.sweep)
            except Exception as e:
                logger.error(f"Stale file sweep failed: {e}", exc_info=True)

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self.run_forever(), name="stale-file-sweep")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
