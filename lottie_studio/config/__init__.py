"""
Configuration module for LottieStudio

This module handles importer/exporter settings and their file and
environment configuration.
"""

from .settings import (
    Settings, SettingsConfig, ImportSettings, ExportSettings,
    get_settings, reset_settings,
)

__all__ = [
    "Settings",
    "SettingsConfig",
    "ImportSettings",
    "ExportSettings",
    "get_settings",
    "reset_settings",
]
