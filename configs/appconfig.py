# Application Configuration
# Centralized configuration for all ports and endpoints
from __future__ import annotations

import os


class AppConfig:
    """Centralized application configuration"""

    # Port Configuration
    FRONTEND_PORT = int(os.getenv('MECHANIM_FRONTEND_PORT', '5173'))
    BACKEND_PORT = int(os.getenv('MECHANIM_BACKEND_PORT', '8021'))

    # URLs (derived from ports)
    FRONTEND_URL = f'http://localhost:{FRONTEND_PORT}'
    BACKEND_URL = f'http://localhost:{BACKEND_PORT}'

    # Optimization requests must carry at least this many drawn points
    MIN_TARGET_POINTS = 3

    # Upper bound accepted for a wall-clock optimization budget (seconds)
    MAX_OPTIMIZATION_SECONDS = 600.0

    @classmethod
    def get_frontend_url(cls):
        return cls.FRONTEND_URL

    @classmethod
    def get_backend_url(cls):
        return cls.BACKEND_URL


# For backward compatibility and easy imports
FRONTEND_PORT = AppConfig.FRONTEND_PORT
BACKEND_PORT = AppConfig.BACKEND_PORT
FRONTEND_URL = AppConfig.FRONTEND_URL
BACKEND_URL = AppConfig.BACKEND_URL
MIN_TARGET_POINTS = AppConfig.MIN_TARGET_POINTS
MAX_OPTIMIZATION_SECONDS = AppConfig.MAX_OPTIMIZATION_SECONDS
