"""
Module execution entry point.

Allows running with: python -m snapshot_cli
"""

import sys
from snapshot_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
