# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Parsers for populating preference trees from document formats.

Available parsers:
- xml_prefs: Java Preferences XML documents (preferences.dtd)

Example:
    >>> from prefstore.parsers import import_preferences
    >>> with open('prefs.xml', 'rb') as f:
    ...     import_preferences(f, user_root, system_root)
"""

from .xml_prefs import (
    EXTERNAL_XML_VERSION,
    PREFS_DTD_URI,
    import_preferences,
    load_prefs_document,
)

__all__ = [
    'EXTERNAL_XML_VERSION',
    'PREFS_DTD_URI',
    'import_preferences',
    'load_prefs_document',
]
