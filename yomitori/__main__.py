"""Allow running yomitori as a module: python -m yomitori."""

import sys

from yomitori.cli import main

sys.exit(main())
