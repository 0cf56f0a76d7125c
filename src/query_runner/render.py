"""Terminal progress table for a running batch."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import TextIO

from query_runner.models import Job
from query_runner.types import JobStatus

# Athena on-demand pricing, per TB scanned.
DOLLARS_PER_TB = 5.00

_BYTES_PER_TB = 1024**4
_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")
_CLEAR_SCREEN = "\x1b[2J\x1b[H"

# ANSI SGR colours
RED = "\x1b[31m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
CYAN = "\x1b[36m"
RESET = "\x1b[0m"

STATUS_COLORS: dict[JobStatus, str] = {
    JobStatus.QUEUED: YELLOW,
    JobStatus.RUNNING: YELLOW,
    JobStatus.SUCCEEDED: GREEN,
    JobStatus.FAILED: RED,
    JobStatus.CANCELLED: RED,
}

NAME_WIDTH = 40
COLUMN_WIDTH = 20


def bytes_to_size(num_bytes: int) -> str:
    """Format a byte count with a binary unit, e.g. ``1.50 KB``."""
    exponent = 0
    while num_bytes >= 1024 ** (exponent + 1) and exponent < len(_SIZE_UNITS) - 1:
        exponent += 1
    if exponent == 0:
        return f"{num_bytes} Bytes"
    return f"{num_bytes / (1024**exponent):.2f} {_SIZE_UNITS[exponent]}"


def bytes_to_terabytes(num_bytes: int) -> float:
    return num_bytes / _BYTES_PER_TB if num_bytes > 0 else 0.0


def format_cost(terabytes: float) -> str:
    """Format the scan cost of ``terabytes`` in dollars.

    Sub-dollar amounts keep eight decimals so tiny scans stay visible.
    """
    cost = terabytes * DOLLARS_PER_TB
    return f"$ {cost:.2f}" if cost > 1 else f"$ {cost:.8f}"


def millis_to_minutes_seconds(millis: int) -> str:
    """Format a duration in milliseconds as ``M:SS``."""
    minutes, remainder = divmod(millis, 60_000)
    seconds = round(remainder / 1000)
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes}:{seconds:02d}"


def _cell(value: str, width: int, color: str = "") -> str:
    if len(value) > width - 1:
        value = value[: width - 2] + "…"
    padding = " " * (width - len(value))
    return f"{color}{value}{RESET}{padding}" if color else value + padding


def _paint(text: str, color: str, enabled: bool) -> str:
    return f"{color}{text}{RESET}" if enabled and text else text


def format_table(jobs: Sequence[Job], color: bool = False) -> str:
    """Build the progress table for a snapshot of jobs.

    Args:
        jobs: Jobs to list, in display order.
        color: Wrap the title, the header and each status in ANSI colours.
    """
    header = (
        _cell("Name", NAME_WIDTH)
        + _cell("Status", COLUMN_WIDTH)
        + _cell("RunTime", COLUMN_WIDTH)
        + _cell("DataScanned", COLUMN_WIDTH)
    ).rstrip()
    lines = [
        _paint("Press Control+C to quit.", GREEN, color),
        "",
        _paint(header, CYAN, color),
    ]
    total_scanned = 0
    for job in jobs:
        runtime = (
            millis_to_minutes_seconds(job.runtime_millis) if job.runtime_millis is not None else ""
        )
        scanned = bytes_to_size(job.bytes_scanned) if job.bytes_scanned is not None else ""
        total_scanned += job.bytes_scanned or 0
        status_color = STATUS_COLORS[job.status] if color else ""
        lines.append(
            (
                _cell(job.name, NAME_WIDTH)
                + _cell(job.status.value, COLUMN_WIDTH, status_color)
                + _cell(runtime, COLUMN_WIDTH)
                + _cell(scanned, COLUMN_WIDTH)
            ).rstrip()
        )
    lines.append("")
    lines.append(
        f"Total scanned: {bytes_to_size(total_scanned)}  "
        f"Estimated cost: {format_cost(bytes_to_terabytes(total_scanned))}"
    )
    return "\n".join(lines)


class ProgressRenderer:
    """Redraws the progress table on every polling cycle."""

    def __init__(
        self,
        stream: TextIO | None = None,
        clear: bool | None = None,
        color: bool | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            stream: Output stream (default: stdout).
            clear: Whether to clear the screen before each redraw. Defaults
                to clearing only when the stream is a terminal.
            color: Whether to colour the table. Defaults like ``clear``.
        """
        self.stream = stream if stream is not None else sys.stdout
        isatty = getattr(self.stream, "isatty", None)
        is_terminal = bool(isatty and isatty())
        self.clear = is_terminal if clear is None else clear
        self.color = is_terminal if color is None else color

    def render(self, jobs: Sequence[Job]) -> None:
        output = format_table(jobs, color=self.color)
        if self.clear:
            self.stream.write(_CLEAR_SCREEN)
        self.stream.write(output + "\n")
        self.stream.flush()

    def message(self, text: str) -> None:
        """Write a status line below the table."""
        self.stream.write(f"\n{_paint(text, GREEN, self.color)}\n")
        self.stream.flush()


__all__ = [
    "CYAN",
    "DOLLARS_PER_TB",
    "GREEN",
    "RED",
    "RESET",
    "STATUS_COLORS",
    "YELLOW",
    "ProgressRenderer",
    "bytes_to_size",
    "bytes_to_terabytes",
    "format_cost",
    "format_table",
    "millis_to_minutes_seconds",
]
