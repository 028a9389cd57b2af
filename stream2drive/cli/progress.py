"""Rich rendering of transfer progress events."""
from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)

from ..core.transfer import ProgressEvent, TransferProgress


class RichProgressReporter:
    """
    Progress callback that drives a rich progress bar.

    Unknown totals (stdin uploads) render as an indeterminate bar with a
    running byte count.
    """

    def __init__(self, progress: Progress, description: str):
        self._progress = progress
        self._description = description
        self._task: Optional[TaskID] = None

    def _ensure_task(self, total: Optional[int]) -> TaskID:
        if self._task is None:
            self._task = self._progress.add_task(self._description, total=total)
        return self._task

    def __call__(self, p: TransferProgress) -> None:
        task = self._ensure_task(p.total_bytes)

        if p.event is ProgressEvent.INITIATION_STARTED:
            self._progress.update(task, description=f"{self._description} (starting)")
        elif p.event is ProgressEvent.INITIATION_COMPLETE:
            self._progress.update(task, description=self._description)
        elif p.event is ProgressEvent.MEDIA_IN_PROGRESS:
            self._progress.update(task, completed=p.bytes_transferred, total=p.total_bytes)
        elif p.event is ProgressEvent.MEDIA_COMPLETE:
            self._progress.update(
                task,
                description=f"{self._description} (done)",
                completed=p.bytes_transferred,
                total=p.bytes_transferred
            )


@contextmanager
def transfer_progress(
    console: Console,
    description: str,
    enabled: bool = True
) -> Iterator[Optional[RichProgressReporter]]:
    """Yield a progress callback, or None when progress display is off."""
    if not enabled:
        yield None
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(binary_units=True),
        TransferSpeedColumn(),
        console=console
    ) as progress:
        yield RichProgressReporter(progress, description)
