"""Pytest configuration shared by unit and integration tests"""

import sys
from pathlib import Path

# Add src/ to path so tests run without an editable install
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))
