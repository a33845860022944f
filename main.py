#!/usr/bin/env python
"""
SketchGrid: Root-level launcher
"""

import sys
from pathlib import Path

# Add project root to sys.path so the sketchgrid package is importable
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from sketchgrid.main import main

if __name__ == "__main__":
    sys.exit(main())
