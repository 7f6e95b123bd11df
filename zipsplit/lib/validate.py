"""Pydantic models for splitter configuration files and environment.

``SplitterSettingsModel`` validates the YAML (or CLI-assembled) settings
before they are turned into a ``SplitConfig``. ``SplitterEnvSettings``
reads defaults from ``ZIPSPLIT_*`` environment variables.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zipsplit.lib.config import (
    DEFAULT_SECONDARY_PATTERN,
    CanaryStrategy,
    SplitStrategy,
    parse_size,
)
from zipsplit.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "LoggingConfig",
    "SplitterSettingsModel",
    "SplitterEnvSettings",
    "format_validation_errors",
]

SizeValue = Union[int, str]


def _size(value: Optional[SizeValue]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_size(value)
    except ConfigurationError as exc:
        raise ValueError(exc.message) from exc


class LoggingConfig(BaseModel):
    """Logging section of a config file.

    Example YAML:
        logging:
          level: INFO
          format: json          # 'json' or 'console'
          file: ./logs/split.log
    """

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="console", description="Output format: 'json' or 'console'")
    file: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"format must be one of: {valid_formats}")
        return v.lower()


class SplitterSettingsModel(BaseModel):
    """Schema of a split configuration.

    Example:
        >>> model = SplitterSettingsModel(
        ...     inputs=["build/classes"],
        ...     primary_output="out/classes.dex.jar",
        ...     secondary_output_dir="out/secondary",
        ...     soft_limit="3MB",
        ...     hard_limit="4MB",
        ... )
        >>> model.hard_limit
        4194304
    """

    inputs: List[str] = Field(..., min_length=1, description="Directories, jars or files")
    primary_output: str = Field(..., min_length=1, description="Primary archive path")
    secondary_output_dir: str = Field(..., min_length=1, description="Secondary archive directory")
    secondary_pattern: str = Field(default=DEFAULT_SECONDARY_PATTERN, description="Name with {index}")
    soft_limit: SizeValue = Field(..., description="Soft size limit (bytes or '3MB')")
    hard_limit: SizeValue = Field(..., description="Hard size limit (bytes or '4MB')")
    split_strategy: str = Field(default="maximize", description="'maximize' or 'minimize'")
    canary_strategy: str = Field(default="none", description="'none' or 'include'")
    canary_prefix: str = Field(default="secondary", min_length=1)
    primary_patterns: List[str] = Field(default_factory=list, description="Globs forced into primary")
    primary_classes: List[str] = Field(default_factory=list, description="Paths forced into primary")
    primary_classes_file: Optional[str] = Field(default=None, description="File listing primary paths")
    ignore_paths: List[str] = Field(default_factory=list, description="Directories skipped in inputs")
    report_dir: Optional[str] = Field(default=None, description="Report output directory")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("soft_limit", "hard_limit")
    @classmethod
    def validate_size(cls, v: SizeValue) -> int:
        size = _size(v)
        if size is None or size <= 0:
            raise ValueError("size limits must be positive")
        return size

    @field_validator("split_strategy")
    @classmethod
    def validate_split_strategy(cls, v: str) -> str:
        valid = [s.value for s in SplitStrategy]
        if v.lower() not in valid:
            raise ValueError(f"split_strategy must be one of: {valid}")
        return v.lower()

    @field_validator("canary_strategy")
    @classmethod
    def validate_canary_strategy(cls, v: str) -> str:
        valid = [s.value for s in CanaryStrategy]
        if v.lower() not in valid:
            raise ValueError(f"canary_strategy must be one of: {valid}")
        return v.lower()

    @field_validator("secondary_pattern")
    @classmethod
    def validate_secondary_pattern(cls, v: str) -> str:
        if "{index" not in v:
            raise ValueError("secondary_pattern must contain an {index} placeholder")
        return v

    @model_validator(mode="after")
    def validate_limits(self) -> "SplitterSettingsModel":
        if int(self.soft_limit) > int(self.hard_limit):
            raise ValueError("soft_limit must not exceed hard_limit")
        return self


class SplitterEnvSettings(BaseSettings):
    """Environment-based defaults using pydantic-settings.

    Example:
        >>> # ZIPSPLIT_LOG_LEVEL=DEBUG
        >>> # ZIPSPLIT_HARD_LIMIT=4MB
        >>> settings = SplitterEnvSettings()
        >>> settings.log_level
        'DEBUG'
    """

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format: 'json' or 'console'")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")
    soft_limit: Optional[SizeValue] = Field(default=None, description="Default soft limit")
    hard_limit: Optional[SizeValue] = Field(default=None, description="Default hard limit")

    model_config = SettingsConfigDict(
        env_prefix="ZIPSPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("soft_limit", "hard_limit")
    @classmethod
    def validate_size(cls, v: Optional[SizeValue]) -> Optional[int]:
        return _size(v)


def format_validation_errors(errors: List[dict]) -> List[str]:
    """Turn pydantic error dicts into one line per problem."""
    lines = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ())) or "config"
        lines.append(f"{location}: {error.get('msg', 'invalid value')}")
    return lines
