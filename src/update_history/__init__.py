#!/usr/bin/env python3
"""
Update History Package

Parses Windows update-history headings into per-build update records.
"""

import json
from pathlib import Path

def _get_version():
    """Get version from config.json"""
    try:
        config_path = Path(__file__).parent / "config.json"
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
        return config.get("application", {}).get("version", "unknown")
    except (OSError, ValueError):
        return "unknown"

__version__ = _get_version()

__all__ = [
    'core',
    'logging',
]
