"""Entry point for ``python -m honeycomb_evals``."""

import sys

from honeycomb_evals.cli import main

sys.exit(main())
