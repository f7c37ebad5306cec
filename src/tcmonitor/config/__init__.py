"""
tcmonitor configuration.

Pydantic-based settings (environment variables, .env files) and the
explicit credential struct handed to the API client.
"""

from tcmonitor.config.settings import Credentials, Settings, get_settings

__all__ = [
    "Credentials",
    "Settings",
    "get_settings",
]
