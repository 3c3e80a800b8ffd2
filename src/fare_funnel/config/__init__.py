"""
Configuration module - Centralized settings management.

This module provides type-safe configuration management using Pydantic,
supporting environment variables, YAML files, and CLI arguments.

Usage:
    from fare_funnel.config import load_config
    
    # Load settings with overrides
    settings = load_config(browser={"headless": False})

Environment Variables:
    FARE_FUNNEL__BROWSER__HEADLESS=false
    FARE_FUNNEL__DETECTION__DEFAULT_BUDGET_S=60
    FARE_FUNNEL__SELECTION__DEFAULT_CABIN="Business Class"
"""

from fare_funnel.config.settings import (
    Settings,
    BrowserSettings,
    DetectionSettings,
    SelectionSettings,
    LoggingSettings,
)
from fare_funnel.config.loader import ConfigLoader, load_config

__all__ = [
    "Settings",
    "BrowserSettings",
    "DetectionSettings",
    "SelectionSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_config",
]
