"""Configuration for actorrun."""

from actorrun.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
