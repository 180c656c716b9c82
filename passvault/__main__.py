"""Entry point for ``python -m passvault``."""

import sys

from passvault.cli import main

if __name__ == "__main__":
    sys.exit(main())
