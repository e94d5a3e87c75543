"""
General utility functions for the CLI application.
"""

from rich.console import Console

err_console: Console = Console(stderr=True)


def debug(
    *values: object,
    sep: str = " ",
    end: str = "\n",
) -> None:
    """
    Print a debug message with orange formatting on stderr.

    Used by the CLI when --verbose is given, so that diagnostics never mix
    with the lists written to stdout.

    Args:
        *values: Variable number of objects to print. All values are converted to strings.
        sep: Separator string between values. Defaults to a single space.
        end: String appended after the last value. Defaults to newline.
    """
    if not values:
        err_console.print(end=end)
        return

    message = sep.join(str(v) for v in values)
    err_console.print(f"DEBUG: {message}", end=end, style="orange1", markup=False)


def format_size(size: int) -> str:
    """
    Format a byte count for display (e.g. 2048 -> "2.0 KiB").

    Args:
        size: Number of bytes.

    Returns:
        str: The size with a binary unit suffix.
    """
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024 or unit == "GiB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"
