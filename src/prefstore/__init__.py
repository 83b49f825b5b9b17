# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""PrefStore - In-memory hierarchical preferences with XML import.

A preference store whose USER and SYSTEM trees live only in memory, and can
be populated at startup from a Java Preferences XML document.
"""

__version__ = "0.1.0"

from .config import PrefStoreSettings
from .exceptions import (
    InvalidFormatError,
    InvalidNameError,
    PreferencesIOError,
    PrefStoreError,
    UnsupportedFormatVersionError,
)
from .factory import PreferencesFactory, default_factory, system_root, user_root
from .node import Partition, PreferenceNode
from .parsers import import_preferences
from .pretty import format_preferences

__all__ = [
    # Core classes
    "PreferenceNode",
    "Partition",
    # Import
    "import_preferences",
    # Bootstrap
    "PreferencesFactory",
    "PrefStoreSettings",
    "default_factory",
    "user_root",
    "system_root",
    # Diagnostics
    "format_preferences",
    # Exceptions
    "PrefStoreError",
    "InvalidNameError",
    "InvalidFormatError",
    "UnsupportedFormatVersionError",
    "PreferencesIOError",
]
