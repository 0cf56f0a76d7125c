"""Persist the final state of a run.

The results document is a JSON array with one object per job (see
:meth:`query_runner.models.Job.to_dict`). It is written atomically: the
array goes to a temporary file next to the target which is then moved into
place with ``os.replace``, so a crash never leaves a truncated document.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from query_runner.logging import get_logger, log_run_summary
from query_runner.models import Job
from query_runner.registry import Registry

logger = get_logger(__name__)

DEFAULT_OUTPUT_PATH = Path("./results.json")


def write_results(jobs: Sequence[Job], path: Path) -> None:
    """Write jobs to ``path`` as a JSON array, atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump([job.to_dict() for job in jobs], f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def load_results(path: Path) -> list[Job]:
    """Read a results document back into jobs.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the document is not a JSON array of job objects.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a JSON array")
    return [Job.from_dict(item) for item in data]


class Finalizer:
    """Writes the registry to the results document at the end of a run.

    Used by both the normal completion path and the interrupt path, so it
    makes no assumption about job states. It never exits the process; the
    caller decides the exit code.
    """

    def __init__(self, output_path: Path = DEFAULT_OUTPUT_PATH) -> None:
        self.output_path = output_path

    async def finalize(self, registry: Registry) -> Path:
        """Write every job in ``registry`` to the output path.

        Returns:
            Path of the written document.

        Raises:
            OSError: If the document cannot be written.
        """
        async with registry.lock:
            jobs = registry.snapshot()
            counts = registry.status_counts()

        write_results(jobs, self.output_path)
        log_run_summary(logger, counts, len(jobs))
        logger.info("Job results saved to %s", self.output_path)
        return self.output_path


__all__ = [
    "DEFAULT_OUTPUT_PATH",
    "Finalizer",
    "load_results",
    "write_results",
]
