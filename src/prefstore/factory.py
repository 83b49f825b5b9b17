# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""PreferencesFactory - owner of the USER and SYSTEM preference trees.

The factory creates both roots and, when configured with an XML document,
imports it at construction time.

Example:
    Loading preferences at startup::

        export PREF2GO_XML_FILE=/etc/myapp/prefs.xml
        export PREF2GO_PRINT_PREF=true

        from prefstore import user_root
        node = user_root().node('/com/acme/app')
        node.get('serverList')
"""

from __future__ import annotations

from functools import lru_cache

import structlog

from .config import PrefStoreSettings
from .exceptions import PreferencesIOError
from .node import Partition, PreferenceNode
from .parsers import import_preferences
from .pretty import format_preferences

logger = structlog.get_logger(__name__)


class PreferencesFactory:
    """Creates and owns one USER root and one SYSTEM root.

    Args:
        settings: Startup settings. Read from the environment when None.

    Raises:
        PreferencesIOError: If the configured XML file cannot be opened or read.
        InvalidFormatError: If the configured XML file is not a valid
            preferences document.
    """

    __slots__ = ('_settings', '_system_root', '_user_root')

    def __init__(self, settings: PrefStoreSettings | None = None) -> None:
        self._settings = settings if settings is not None else PrefStoreSettings()
        self._settings.setup_logging()
        self._system_root = PreferenceNode.create_root(Partition.SYSTEM)
        self._user_root = PreferenceNode.create_root(Partition.USER)
        self._load_preferences_from_xml_file()

    def __repr__(self) -> str:
        return f"PreferencesFactory(xml_file={self._settings.xml_file!r})"

    @property
    def settings(self) -> PrefStoreSettings:
        return self._settings

    def user_root(self) -> PreferenceNode:
        """Root of the USER tree."""
        return self._user_root

    def system_root(self) -> PreferenceNode:
        """Root of the SYSTEM tree."""
        return self._system_root

    def _load_preferences_from_xml_file(self) -> None:
        xml_file = self._settings.xml_file
        if xml_file is None:
            return
        logger.debug("preferences_load_started", xml_file=str(xml_file))
        try:
            xml_stream = open(xml_file, 'rb')
        except OSError as e:
            raise PreferencesIOError(f"Cannot open preferences file '{xml_file}': {e}") from e
        with xml_stream:
            import_preferences(xml_stream, self._user_root, self._system_root)

        logger.info("preferences_loaded", xml_file=str(xml_file))

        if self._settings.print_pref:
            logger.info("preference_values", dump='\n' + self.format_trees())

    def format_trees(self) -> str:
        """Dump the SYSTEM tree then the USER tree, skipping an empty SYSTEM tree."""
        system_dump = format_preferences(self._system_root)
        user_dump = format_preferences(self._user_root) or ''
        if system_dump is None:
            return user_dump
        return system_dump + '\n' + user_dump


@lru_cache(maxsize=None)
def default_factory() -> PreferencesFactory:
    """Return the process-wide factory, built from the environment on first use."""
    return PreferencesFactory()


def user_root() -> PreferenceNode:
    """Root of the process-wide USER tree."""
    return default_factory().user_root()


def system_root() -> PreferenceNode:
    """Root of the process-wide SYSTEM tree."""
    return default_factory().system_root()
