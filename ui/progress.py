"""
Rich progress bar for database scans.

Scans are measured in bytes of database body, so the bar ends with a
scanned/total size column. The text column shows the task description, whose
color tells the state of the scan (see ProgressState).
"""

from enum import StrEnum
from typing import Optional

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
)


class ProgressState(StrEnum):
    """
    State of a scan, valued by the Rich color its description is drawn in.

    Attributes:
        IN_PROGRESS: The scan is running.
        COMPLETE: The whole body was scanned.
        ERROR: The scan stopped on a database error.
    """

    IN_PROGRESS = "magenta"
    COMPLETE = "green"
    ERROR = "red"

    def style(self, text: str) -> str:
        """Wrap `text` in Rich markup for this state's color."""
        return f"[{self}]{text}"


def create_progress(transient: bool = False) -> Progress:
    """
    Build the Rich Progress used for scans.

    Args:
        transient (bool): Clear the bar from the terminal when the progress
            context exits. Defaults to False.

    Returns:
        Progress: A Progress with spinner, description, bar, percentage and
            byte-count columns.
    """
    columns = (
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        DownloadColumn(),
    )
    return Progress(*columns, transient=transient)


def create_task(progress: Progress, description: str, total: Optional[int]) -> TaskID:
    """
    Add a scan task to `progress`, drawn in the IN_PROGRESS color.

    Args:
        progress (Progress): The progress to add the task to.
        description (str): The text shown next to the bar.
        total (Optional[int]): Body size in bytes, or None for an
            indeterminate bar.

    Returns:
        TaskID: The id to pass to update_progress().
    """
    return progress.add_task(ProgressState.IN_PROGRESS.style(description), total=total)


def update_progress(
    progress: Progress,
    task: TaskID,
    state: Optional[ProgressState] = None,
    *,
    total: Optional[float] = None,
    completed: Optional[float] = None,
    advance: Optional[float] = None,
    description: Optional[str] = None,
) -> None:
    """
    Move a scan task forward or change its state.

    A new description is always drawn in the color of a state, so `state` and
    `description` are given together or not at all.

    Args:
        progress (Progress): The progress holding the task.
        task (TaskID): The task to update.
        state (Optional[ProgressState]): The state to show.
        total (Optional[float]): New total in bytes. None keeps the current one.
        completed (Optional[float]): Bytes scanned so far, as an absolute value.
        advance (Optional[float]): Bytes scanned since the last update.
        description (Optional[str]): New description text.

    Raises:
        ValueError: If only one of `state` and `description` is given.
    """
    if (state is None) != (description is None):
        raise ValueError("state and description must be given together.")

    fields = {"total": total, "completed": completed, "advance": advance}
    # Rich would clear the description if passed None
    if state is not None:
        fields["description"] = state.style(description)
    progress.update(task, **fields)
