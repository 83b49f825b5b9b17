# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""PrefStore configuration settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging_setup import configure_logging


class PrefStoreSettings(BaseSettings):
    """Startup settings read from PREF2GO_* environment variables.

    Attributes:
        xml_file: Preferences XML document imported at startup
            (PREF2GO_XML_FILE). Nothing is imported when unset.
        print_pref: Log the loaded trees at INFO after a successful import
            (PREF2GO_PRINT_PREF). Only has effect when xml_file is set.
        log_level: Level passed to configure_logging (PREF2GO_LOG_LEVEL).
        log_json: Render logs as JSON (PREF2GO_LOG_JSON).
    """

    model_config = SettingsConfigDict(
        env_prefix="PREF2GO_",
        extra="ignore",
    )

    xml_file: Optional[Path] = None
    print_pref: bool = False
    log_level: str = Field(default="INFO")
    log_json: bool = False

    def setup_logging(self) -> None:
        configure_logging(level=self.log_level, json_logs=self.log_json)
