"""
Модуль конфигурации SmartCert.
"""

from .settings import get_settings, Settings

__all__ = ['get_settings', 'Settings']
