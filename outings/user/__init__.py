"""User profile lookups."""

from .services import UserDirectory, smart_display_name

__all__ = ["UserDirectory", "smart_display_name"]
