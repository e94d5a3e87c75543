"""
Progress reporting for database scans.

A scan reports the body bytes it has consumed through a ProgressDisplay, so the
core never imports Rich. The CLI hands in a RichProgressDisplay; everything
else falls back to NoOpProgressDisplay.

A display is used as a context manager and sees one scan:

    with display as pd:
        pd.on_start("Scanning symbols...", total_bytes)
        pd.on_advance(nbytes)       # any number of times
        pd.on_complete("Done.")     # or pd.on_fail("...") if the scan aborts
"""

from types import TracebackType
from typing import Protocol

from rich.progress import Progress, TaskID
from ui.progress import (
    ProgressState,
    create_progress,
    create_task,
    update_progress,
)


class ProgressDisplay(Protocol):
    """Receives progress of a single scan over a database body."""

    def __enter__(self) -> "ProgressDisplay": ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...

    def on_start(self, description: str, total: int | None) -> None:
        """
        Begin the scan.

        Args:
            description: Text shown next to the bar.
            total: Size of the body in bytes, or None if unknown.
        """

    def on_advance(self, nbytes: int) -> None:
        """Record `nbytes` more bytes of the body as scanned."""

    def on_complete(self, description: str) -> None:
        """Mark the whole body as scanned and show a summary."""

    def on_fail(self, description: str) -> None:
        """Show that the scan stopped before reaching the end of the body."""


class RichProgressDisplay:
    """
    Shows the scan as a Rich progress bar.

    The bar exists only while the context is entered. With `transient=True`
    it is cleared from the terminal on exit, which keeps command output clean.
    """

    def __init__(self, transient: bool = False) -> None:
        self._transient = transient
        self._progress: Progress | None = None
        self._task: TaskID | None = None
        self._total: int | None = None
        self._scanned = 0

    def __enter__(self) -> "RichProgressDisplay":
        self._progress = create_progress(transient=self._transient)
        self._progress.__enter__()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._progress is not None:
            self._progress.__exit__(exc_type, exc_val, exc_tb)
        self._progress = None
        self._task = None

    def _active(self, started: bool = True) -> tuple[Progress, TaskID | None]:
        if self._progress is None:
            raise RuntimeError(
                "RichProgressDisplay is not active. "
                "Use: with RichProgressDisplay() as pd:"
            )
        if started and self._task is None:
            raise RuntimeError("on_start() has not been called for this scan")
        return self._progress, self._task

    def on_start(self, description: str, total: int | None) -> None:
        """
        Add the scan's task to the bar.

        Raises:
            RuntimeError: Outside the context manager.
        """
        progress, _ = self._active(started=False)
        self._task = create_task(progress, description, total=total)
        self._total = total
        self._scanned = 0

    def on_advance(self, nbytes: int) -> None:
        """
        Raises:
            RuntimeError: Outside the context manager or before on_start().
            ValueError: If `nbytes` is negative.
        """
        if nbytes < 0:
            raise ValueError(f"Cannot advance by a negative byte count: {nbytes}")
        progress, task = self._active()
        if nbytes:
            update_progress(progress, task, advance=nbytes)
            self._scanned += nbytes

    def on_complete(self, description: str) -> None:
        """
        Fill the bar and show `description` in the COMPLETE color.

        A scan started without a total is given one equal to what was scanned,
        so the bar still ends full.

        Raises:
            RuntimeError: Outside the context manager or before on_start().
        """
        progress, task = self._active()
        done = self._total if self._total is not None else self._scanned
        update_progress(
            progress,
            task,
            ProgressState.COMPLETE,
            total=done,
            completed=done,
            description=description,
        )

    def on_fail(self, description: str) -> None:
        """
        Leave the bar where the scan stopped and show `description` in red.

        Raises:
            RuntimeError: Outside the context manager or before on_start().
        """
        progress, task = self._active()
        update_progress(progress, task, ProgressState.ERROR, description=description)


class NoOpProgressDisplay:
    """Accepts every call and shows nothing."""

    def __enter__(self) -> "NoOpProgressDisplay":
        return self

    def __exit__(self, *args) -> None:
        pass

    def on_start(self, description: str, total: int | None) -> None:
        pass

    def on_advance(self, nbytes: int) -> None:
        pass

    def on_complete(self, description: str) -> None:
        pass

    def on_fail(self, description: str) -> None:
        pass
