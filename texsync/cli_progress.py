"""CLI progress display for sync operations.

This module provides a Rich-based progress display fed by the
SyncProgressTracker of the sync engine.
"""

from typing import Optional

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .sync.progress import SyncProgressInfo, SyncProgressTracker, SyncStage


class SyncProgressDisplay:
    """Rich-based progress display for sync operations.

    Stage transitions update a single task's description; item stages
    (downloading, deleting) also drive its bar with current/total.
    """

    def __init__(self) -> None:
        """Initialize the progress display."""
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self._stage: Optional[SyncStage] = None

    def create_tracker(self) -> SyncProgressTracker:
        """Create a SyncProgressTracker that updates this display.

        Returns:
            A configured SyncProgressTracker
        """
        return SyncProgressTracker(callback=self._handle_event)

    def _handle_event(self, info: SyncProgressInfo) -> None:
        """Handle a progress event from the tracker.

        Args:
            info: Progress information
        """
        if self._progress is None or self._task is None:
            return

        if info.stage != self._stage:
            self._stage = info.stage
            # Reset the bar for each new stage
            self._progress.reset(self._task, total=info.total)
            if info.stage not in (SyncStage.DOWNLOADING, SyncStage.DELETING):
                self._progress.console.print(info.message, style="dim", markup=False)

        if info.current is not None:
            self._progress.update(
                self._task,
                description=info.message,
                total=info.total,
                completed=info.current - 1,
            )
        else:
            self._progress.update(self._task, description=info.message)

        if info.stage == SyncStage.COMPLETE:
            self._progress.update(self._task, total=1, completed=1)

    def __enter__(self) -> "SyncProgressDisplay":
        """Enter context manager - start progress display."""
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            transient=True,
            refresh_per_second=4,
        )
        self._progress.__enter__()
        self._task = self._progress.add_task("Preparing sync...", total=None)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - stop progress display."""
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
            self._progress = None
            self._task = None
            self._stage = None
