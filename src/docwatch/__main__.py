"""Entry point for ``python -m docwatch``.

Usage:
    python -m docwatch README.md
    python -m docwatch notes.md --poll-interval-ms 1000 -vv
"""

import sys

from docwatch.cli import main

if __name__ == "__main__":
    sys.exit(main())
