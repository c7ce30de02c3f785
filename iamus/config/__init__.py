"""Iamus configuration (public API).

Import the loader from here::

    from iamus.config import load_settings

    settings = load_settings()

Implementation lives in :mod:`iamus.config.settings`; the default tree in
:mod:`iamus.config.defaults`.
"""

from .defaults import DEFAULT_CONFIG, PUBLIC_SECTIONS, SECTIONS, UNKNOWN_VERSION
from .json_source import read_in_json
from .merge import deep_merge
from .settings import (
    ConfigurationError,
    Settings,
    load_settings,
    resolve_configuration,
)

__all__ = [
    "DEFAULT_CONFIG",
    "PUBLIC_SECTIONS",
    "SECTIONS",
    "UNKNOWN_VERSION",
    "ConfigurationError",
    "Settings",
    "deep_merge",
    "load_settings",
    "read_in_json",
    "resolve_configuration",
]
