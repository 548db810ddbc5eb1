"""Package entry point: ``python -m jarsmith``."""

from __future__ import annotations

import sys

from jarsmith.cli import main

if __name__ == "__main__":
    sys.exit(main())
