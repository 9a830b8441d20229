#!/usr/bin/env python3
"""
Mechanim Backend Server
Uses centralized port configuration from configs.appconfig
"""
from __future__ import annotations

import logging
import os
import sys

import uvicorn

# Add parent directory to path to import configs
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from configs.appconfig import BACKEND_PORT  # noqa: E402
from configs.logging_config import setup_logging  # noqa: E402

LOG_LEVEL_MAP = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
}


if __name__ == '__main__':
    # Set log level from environment variable, default to DEBUG
    log_level = os.getenv('LOG_LEVEL', 'DEBUG').upper()
    uvicorn_log_level = log_level.lower() if log_level in LOG_LEVEL_MAP else 'info'
    setup_logging(level=LOG_LEVEL_MAP.get(log_level, logging.INFO))

    print(f'Starting Mechanim Backend Server on port {BACKEND_PORT}...')
    print(f'Log level: {log_level} (set LOG_LEVEL env var to change)')
    uvicorn.run(
        'backend.mechanim_api:app',
        host='0.0.0.0',
        port=BACKEND_PORT,
        reload=True,
        log_level=uvicorn_log_level,
    )
