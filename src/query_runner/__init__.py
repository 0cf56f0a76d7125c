"""Query Runner - submit a directory of queries to Athena and track them to completion."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("query-runner")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from query_runner.app import main
from query_runner.runner import BatchRunner, RunResult

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "BatchRunner",
    "RunResult",
    "main",
]
