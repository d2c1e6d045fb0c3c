"""Configuration module for pocketauth.

Usage:
    from pocketauth.core.config import settings

    if settings.OPEN_BROWSER:
        ...
"""

from pocketauth.core.config.settings import Settings

__all__ = [
    "Settings",
    "settings",
]

# Singleton settings instance
settings = Settings()
