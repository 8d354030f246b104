"""Configuration package - settings, logging and ranking tables."""
from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
