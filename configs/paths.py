"""
Configuration file for directory paths
"""
from __future__ import annotations

from pathlib import Path

# Define the base project directory
BASE_DIR = Path(__file__).parent.parent

# Backend log file (read back by the /logs/backend endpoints)
LOG_FILE = BASE_DIR / 'backend.log'

# Built-in mechanism templates shipped with the demos
PRESETS_FILE = BASE_DIR / 'demo' / 'presets.json'

# Demo outputs (created on demand)
USER_DIR = BASE_DIR / 'user'
