"""YAML configuration loader for split runs.

Example YAML (split.yaml):
    inputs:
      - ./build/classes
      - ${ANDROID_LIBS}/support.jar
    primary_output: ./out/classes.dex.jar
    secondary_output_dir: ./out/secondary
    secondary_pattern: "secondary-{index}.dex.jar"
    soft_limit: 3MB
    hard_limit: 4MB
    split_strategy: maximize
    canary_strategy: include
    primary_patterns:
      - "com/example/app/*"
    primary_classes_file: ./primary_classes.txt
    report_dir: ./out/reports

Usage:
    from zipsplit.lib.config_loader import load_split_config
    config = load_split_config("./split.yaml")
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from zipsplit.lib.config import CanaryStrategy, SplitConfig, SplitStrategy
from zipsplit.lib.errors import ConfigurationError
from zipsplit.lib.predicates import primary_predicate
from zipsplit.lib.validate import SplitterSettingsModel, format_validation_errors

logger = logging.getLogger(__name__)

__all__ = [
    "load_split_config",
    "load_settings",
    "build_split_config",
    "validate_settings",
    "expand_env_vars",
]

# ${VAR_NAME} or $VAR_NAME
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")

_PATH_KEYS = ("primary_output", "secondary_output_dir", "primary_classes_file", "report_dir")


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in strings, lists and dicts.

    Unset variables are left as written.
    """
    if isinstance(value, str):
        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        return ENV_VAR_PATTERN.sub(replacer, value)
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(v) for v in value]
    return value


def _resolve_path(path: str, config_dir: Path) -> str:
    """Resolve relative paths against the config file's directory."""
    if not path or os.path.isabs(path):
        return path
    return str(config_dir / path)


def _read_yaml(path: Path) -> Dict[str, Any]:
    logger.info("Loading split config from %s", path)

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}", field="config_path")

    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file: {e}", field="config_path") from e

    if not isinstance(cfg, dict):
        raise ConfigurationError("Config must be a YAML mapping", field="config_path")

    return cfg


def load_settings(
    path: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None,
    defaults: Optional[Dict[str, Any]] = None,
) -> Tuple[SplitterSettingsModel, Path]:
    """Read and validate a YAML config file.

    A ``.env`` file next to the config is loaded first so ``${VAR}``
    references can use it.

    Args:
        path: YAML file
        overrides: Values that replace keys from the file (e.g. CLI flags)
        defaults: Values used for keys the file does not set (e.g. ``ZIPSPLIT_*``)

    Returns:
        Validated settings and the directory relative paths resolve against

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    config_path = Path(path)
    config_dir = config_path.resolve().parent
    env_file = config_dir / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=env_file, override=False)

    raw = {**(defaults or {}), **expand_env_vars(_read_yaml(config_path))}
    if overrides:
        raw.update({k: v for k, v in overrides.items() if v is not None})

    return validate_settings(raw), config_dir


def validate_settings(raw: Dict[str, Any]) -> SplitterSettingsModel:
    try:
        return SplitterSettingsModel(**raw)
    except ValidationError as exc:
        issues = format_validation_errors(exc.errors())
        raise ConfigurationError(
            "Invalid split configuration:\n" + "\n".join(f"  - {i}" for i in issues),
            details={"issue_count": len(issues)},
        ) from exc


def build_split_config(
    settings: SplitterSettingsModel,
    base_dir: Optional[Path] = None,
) -> SplitConfig:
    """Turn validated settings into an immutable ``SplitConfig``."""
    base_dir = base_dir or Path.cwd()

    paths = {
        key: _resolve_path(getattr(settings, key), base_dir)
        for key in _PATH_KEYS
        if getattr(settings, key)
    }
    inputs = tuple(Path(_resolve_path(p, base_dir)) for p in settings.inputs)

    try:
        required = primary_predicate(
            patterns=settings.primary_patterns,
            paths=settings.primary_classes,
            class_list=paths.get("primary_classes_file"),
        )
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to read primary class list: {exc}",
            field="primary_classes_file",
            value=paths.get("primary_classes_file"),
        ) from exc

    report_dir = paths.get("report_dir")
    return SplitConfig(
        inputs=inputs,
        primary_output=Path(paths["primary_output"]),
        secondary_output_dir=Path(paths["secondary_output_dir"]),
        secondary_pattern=settings.secondary_pattern,
        soft_limit=int(settings.soft_limit),
        hard_limit=int(settings.hard_limit),
        required_in_primary=required,
        split_strategy=SplitStrategy(settings.split_strategy),
        canary_strategy=CanaryStrategy(settings.canary_strategy),
        canary_prefix=settings.canary_prefix,
        report_dir=Path(report_dir) if report_dir else None,
        ignore_paths=tuple(settings.ignore_paths),
    )


def load_split_config(
    path: Union[str, Path],
    overrides: Optional[Dict[str, Any]] = None,
) -> SplitConfig:
    """Load a YAML config file straight into a ``SplitConfig``."""
    settings, config_dir = load_settings(path, overrides)
    return build_split_config(settings, config_dir)
