"""Configuration module - public API.

Centralized configuration using Pydantic BaseSettings.

Exports:
    settings: Singleton Settings instance
    Settings: Main settings class (for testing/overrides)
    EventBusSettings: Event bus settings class
"""

from evbus.configuration.events import EventBusSettings
from evbus.configuration.settings import Settings, settings

__all__ = ["Settings", "EventBusSettings", "settings"]
