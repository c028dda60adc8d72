"""
Services package for the clan battle bot.
"""

from .base import BaseService
from .settings import SettingsService

__all__ = ['BaseService', 'SettingsService']
