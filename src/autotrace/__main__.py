"""Allow ``python -m autotrace``."""

import sys

from autotrace.cli import main

sys.exit(main())
