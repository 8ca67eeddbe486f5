#!/usr/bin/env python3
"""
Update History Tools Entry Point

Runs the update history tool from the project root by putting src/ on the
Python path.
"""

import sys
from pathlib import Path

# Add the src directory to Python path so we can import the update_history package
project_root = Path(__file__).parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from update_history.core.update_tool import main

if __name__ == "__main__":
    main()
