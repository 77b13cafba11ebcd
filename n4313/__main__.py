"""
Entry point for ``python -m n4313``.

All argument parsing and menu logic lives in cli.py.
"""

import sys

from n4313.cli import main

if __name__ == "__main__":
    sys.exit(main())
