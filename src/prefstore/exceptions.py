# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""PrefStore exceptions."""

from __future__ import annotations


class PrefStoreError(Exception):
    """Base exception for PrefStore errors."""

    pass


class InvalidNameError(PrefStoreError, ValueError):
    """Raised when a node name or path is malformed."""

    pass


class InvalidFormatError(PrefStoreError):
    """Raised when a preferences document is not a valid preferences document.

    Covers documents that are not well-formed, that do not match the
    preferences document type, or that declare a foreign system identifier.
    The underlying parser error, if any, is chained as ``__cause__``.
    """

    pass


class UnsupportedFormatVersionError(InvalidFormatError):
    """Raised when a document declares a format version newer than supported."""

    pass


class PreferencesIOError(PrefStoreError, OSError):
    """Raised when the preferences source cannot be read."""

    pass
