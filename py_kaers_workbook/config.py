# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
This module handles the configuration management for the KAERS workbook converter.

It uses a hierarchical configuration approach, allowing settings to be loaded
from a YAML file, environment variables, and CLI arguments.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Self
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "PY_KAERS_WORKBOOK_"


class CodeTableSettings(BaseModel):
    """Configuration for the static reference code tables."""

    reference_dir: str = Field(
        "./reference",
        description="Directory holding the pipe-delimited reference code tables.",
    )


class ProcessingSettings(BaseModel):
    """Configuration for parsing and transforming the uploaded extracts."""

    encoding: str = Field("utf-8-sig", description="Text encoding of the extract files.")
    delimiter: str = Field("|", description="Field separator of the extract files.")
    deduplicate: bool = Field(
        True, description="Drop superseded and nullified case versions before output."
    )


class WorkbookSettings(BaseModel):
    """Configuration for the generated workbooks."""

    output_path: str = Field(
        "./kaers_workbook.xlsx", description="Target path of the normalized workbook."
    )
    narrative_output_path: str = Field(
        "./kaers_narrative.xlsx", description="Target path of the narrative workbook."
    )
    header_bold: bool = True
    header_bg_color: str = "#D3D3D3"
    header_border: int = 1
    max_sheet_name_length: int = Field(31, description="Maximum length of a sheet name.")


class AppSettings(BaseSettings):
    """
    Main application settings class.

    Settings are loaded from the following sources in order of precedence:
    1. Environment variables (e.g., `PY_KAERS_WORKBOOK_CODE_TABLES__REFERENCE_DIR=...`)
    2. YAML configuration file (`config.yaml` or path specified by `CONFIG_FILE` env var)
    3. Default values defined in this class.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file_encoding="utf-8",
    )

    code_tables: CodeTableSettings = Field(default_factory=CodeTableSettings)  # type: ignore
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)  # type: ignore
    workbook: WorkbookSettings = Field(default_factory=WorkbookSettings)  # type: ignore
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, path: Path) -> Self:
        """Load configuration from a YAML file."""
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found at: {path}")

        with open(path, "r") as f:
            config_data = yaml.safe_load(f)

        return cls.model_validate(config_data)


# Settings that may come from the YAML profile, keyed by (section, field).
_FILE_OVERRIDABLE = [
    ("code_tables", "reference_dir"),
    ("processing", "encoding"),
    ("processing", "delimiter"),
    ("processing", "deduplicate"),
    ("workbook", "output_path"),
    ("workbook", "narrative_output_path"),
    ("workbook", "header_bold"),
    ("workbook", "header_bg_color"),
    ("workbook", "header_border"),
    ("workbook", "max_sheet_name_length"),
]


def load_config(profile: Optional[str] = None, config_file: Optional[str] = None) -> AppSettings:
    """
    Load application configuration.

    It loads settings from a YAML file and then overrides with any
    environment variables. A specific profile can be selected from the config file.

    :param profile: The configuration profile to load (e.g., 'dev', 'prod').
    :param config_file: Path to a specific YAML config file.
    :return: An instance of AppSettings.
    """
    # pydantic-settings gives file values precedence over env vars for nested
    # models, so env settings are loaded first and file values only fill the
    # fields whose env var is unset.
    env_settings = AppSettings()

    cfg_path_str = config_file or os.environ.get("CONFIG_FILE", "config.yaml")
    cfg_path = Path(cfg_path_str)

    if cfg_path.exists():
        with open(cfg_path, "r") as f:
            yaml_data = yaml.safe_load(f) or {}

        profile_data = yaml_data.get(profile, {}) if profile else yaml_data

        if profile_data:
            file_settings = AppSettings.model_validate(profile_data)
            for section, field in _FILE_OVERRIDABLE:
                if os.getenv(f"{ENV_PREFIX}{section.upper()}__{field.upper()}") is None:
                    setattr(
                        getattr(env_settings, section),
                        field,
                        getattr(getattr(file_settings, section), field),
                    )
            if os.getenv(f"{ENV_PREFIX}LOG_LEVEL") is None:
                env_settings.log_level = file_settings.log_level

    return env_settings


# Example of how to create a default config file for users
DEFAULT_CONFIG = """
# Default configuration for py-kaers-workbook
# You can create profiles like 'dev', 'prod'
dev:
  code_tables:
    reference_dir: ./reference
  workbook:
    output_path: /tmp/kaers_workbook.xlsx
    narrative_output_path: /tmp/kaers_narrative.xlsx
  log_level: DEBUG

prod:
  code_tables:
    reference_dir: /srv/kaers/reference
  processing:
    deduplicate: true
  workbook:
    output_path: /data/kaers/kaers_workbook.xlsx
    narrative_output_path: /data/kaers/kaers_narrative.xlsx
  log_level: INFO
"""
