#!/usr/bin/env python3
"""
stereodnn CLI - development entry point.

Runs the CLI straight from a source checkout; the installed console script
`stereodnn` points at the same stereodnn.cli.app:main.
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent.parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from stereodnn.cli.app import main


if __name__ == "__main__":
    sys.exit(main())
