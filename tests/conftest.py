"""Pytest configuration for the PLC suite."""

import sys
from pathlib import Path

SRC_DIR = Path(__file__).parent.parent / "src"

# Allow running from a checkout without installing
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))
