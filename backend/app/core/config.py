"""
Configuration settings for Filament Finder

The settings implementation lives in settings.py using pydantic-settings.

Usage:
    from app.core.config import settings
    # or
    from app.core.settings import get_settings
    settings = get_settings()
"""
from app.core.settings import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
