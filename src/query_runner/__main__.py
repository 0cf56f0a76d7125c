"""Allow running Query Runner with ``python -m query_runner``."""

import sys

from query_runner.app import main

sys.exit(main())
