#!/usr/bin/env python3
"""
file-search entry point.
"""

import sys
from pathlib import Path

# Allow running from repo root without installing package
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from file_search.cli import main


if __name__ == "__main__":
    main()
