"""Configuration module for loading and managing application settings.

Nothing is read at import time. The entrypoint loads the settings once and
passes the resulting dictionary to the components that need it.
"""
from .lib.load_settings_conf import (
    DEFAULTS,
    SettingsError,
    load_settings_conf,
    validate_settings,
)

__all__ = ['DEFAULTS', 'SettingsError', 'load_settings_conf', 'validate_settings']
