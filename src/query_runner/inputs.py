"""Load query units from a directory tree, one query per file."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from query_runner.exceptions import InputError
from query_runner.logging import get_logger
from query_runner.models import QueryUnit

logger = get_logger(__name__)


def collect_query_files(root: Path, suffixes: Iterable[str] = ()) -> list[Path]:
    """Find query files under ``root``, recursively.

    Args:
        root: Directory to search.
        suffixes: Accepted file suffixes (e.g. ``".sql"``), compared
            case-insensitively. Empty means every regular file.

    Returns:
        Matching file paths in sorted order.
    """
    wanted = {s.lower() if s.startswith(".") else f".{s.lower()}" for s in suffixes}
    return sorted(
        path
        for path in root.rglob("*")
        if path.is_file() and (not wanted or path.suffix.lower() in wanted)
    )


def read_query_units(paths: Sequence[Path]) -> list[QueryUnit]:
    """Read each file as one query unit named after its path.

    Raises:
        InputError: If a file cannot be read.
    """
    units: list[QueryUnit] = []
    for path in paths:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(f"Cannot read query file {path}: {e}") from e
        units.append(QueryUnit(name=str(path), text=text))
    return units


def load_query_units(root: Path, suffixes: Iterable[str] = ()) -> list[QueryUnit]:
    """Collect and read every query file under ``root``.

    Raises:
        InputError: If ``root`` is not a directory, holds no query files, or
            a file cannot be read.
    """
    if not root.is_dir():
        raise InputError(f"Query directory not found: {root}")

    paths = collect_query_files(root, suffixes)
    if not paths:
        raise InputError(f"No query files found in {root}")

    logger.info("Loaded %s query files from %s", len(paths), root)
    return read_query_units(paths)


__all__ = ["collect_query_files", "load_query_units", "read_query_units"]
