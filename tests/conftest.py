# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures."""

import pytest

import prefstore.config


@pytest.fixture(autouse=True)
def logging_calls(monkeypatch):
    """Record configure_logging calls instead of reconfiguring structlog."""
    calls = []
    monkeypatch.setattr(
        prefstore.config, 'configure_logging', lambda **kwargs: calls.append(kwargs)
    )
    return calls
