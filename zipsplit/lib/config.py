"""Split configuration.

``SplitConfig`` is built once per run and never mutated. All cross-field
validation happens in ``__post_init__`` so a constructed config is always
usable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from zipsplit.lib.canary import CANARY_PREFIX, create_canary
from zipsplit.lib.errors import ConfigurationError

__all__ = [
    "SplitStrategy",
    "CanaryStrategy",
    "SplitConfig",
    "parse_size",
    "DEFAULT_SECONDARY_PATTERN",
]

DEFAULT_SECONDARY_PATTERN = "secondary-{index}.dex.jar"

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*([KMG]?)I?B?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"": 1, "K": 1024, "M": 1024 ** 2, "G": 1024 ** 3}


class SplitStrategy(Enum):
    """How aggressively the primary archive is filled."""

    MAXIMIZE_PRIMARY = "maximize"  # Greedy fill once everything left fits
    MINIMIZE_PRIMARY = "minimize"  # Only required entries go to primary


class CanaryStrategy(Enum):
    """Whether secondary archives get a canary class."""

    NONE = "none"
    INCLUDE = "include"


def parse_size(value: Union[int, str]) -> int:
    """Parse a byte count such as ``4096``, ``"64KB"`` or ``"12MiB"``.

    Units are binary (1KB == 1024 bytes).
    """
    if isinstance(value, bool):
        raise ConfigurationError("Size must be a number of bytes", value=value)
    if isinstance(value, int):
        return value
    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ConfigurationError(f"Invalid size: {value!r}", value=value)
    number, unit = match.groups()
    return int(number) * _SIZE_UNITS[unit.upper()]


def _never_required(relative_path: str) -> bool:
    return False


@dataclass(frozen=True)
class SplitConfig:
    """Everything a single split run needs.

    Attributes:
        inputs: Input units (directories, jars, files), in processing order
        primary_output: Path of the primary archive
        secondary_output_dir: Directory receiving secondary archives
        soft_limit: Secondary size that triggers rotation at a unit boundary
        hard_limit: Size no archive may ever exceed
        secondary_pattern: Secondary archive file name, with an ``{index}``
            placeholder filled in starting at 1
        required_in_primary: Predicate over relative entry paths
        split_strategy: Primary fill policy
        canary_strategy: Canary injection policy
        canary_prefix: Package prefix of canary classes
        report_dir: Optional directory for per-archive reports
        ignore_paths: Relative directory paths skipped while traversing inputs
    """

    inputs: Tuple[Path, ...]
    primary_output: Path
    secondary_output_dir: Path
    soft_limit: int
    hard_limit: int
    secondary_pattern: str = DEFAULT_SECONDARY_PATTERN
    required_in_primary: Callable[[str], bool] = field(default=_never_required, compare=False)
    split_strategy: SplitStrategy = SplitStrategy.MAXIMIZE_PRIMARY
    canary_strategy: CanaryStrategy = CanaryStrategy.NONE
    canary_prefix: str = CANARY_PREFIX
    report_dir: Optional[Path] = None
    ignore_paths: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Normalize while staying frozen
        object.__setattr__(self, "inputs", tuple(dict.fromkeys(Path(p) for p in self.inputs)))
        object.__setattr__(self, "primary_output", Path(self.primary_output))
        object.__setattr__(self, "secondary_output_dir", Path(self.secondary_output_dir))
        object.__setattr__(self, "ignore_paths", tuple(self.ignore_paths))
        if self.report_dir is not None:
            object.__setattr__(self, "report_dir", Path(self.report_dir))
        self._validate()

    def _validate(self) -> None:
        if not self.inputs:
            raise ConfigurationError("At least one input is required", field="inputs")
        if self.hard_limit <= 0:
            raise ConfigurationError(
                "hard_limit must be positive", field="hard_limit", value=self.hard_limit
            )
        if self.soft_limit <= 0:
            raise ConfigurationError(
                "soft_limit must be positive", field="soft_limit", value=self.soft_limit
            )
        if self.soft_limit > self.hard_limit:
            raise ConfigurationError(
                "soft_limit must not exceed hard_limit",
                field="soft_limit",
                details={"soft_limit": self.soft_limit, "hard_limit": self.hard_limit},
            )
        try:
            first, second = self.secondary_name(1), self.secondary_name(2)
        except (KeyError, IndexError, ValueError) as exc:
            raise ConfigurationError(
                f"secondary_pattern cannot be formatted: {exc}",
                field="secondary_pattern",
                value=self.secondary_pattern,
            ) from exc
        if first == second:
            raise ConfigurationError(
                "secondary_pattern must contain an {index} placeholder",
                field="secondary_pattern",
                value=self.secondary_pattern,
            )
        if not isinstance(self.split_strategy, SplitStrategy):
            raise ConfigurationError(
                "Unknown split strategy", field="split_strategy", value=self.split_strategy
            )
        if not isinstance(self.canary_strategy, CanaryStrategy):
            raise ConfigurationError(
                "Unknown canary strategy", field="canary_strategy", value=self.canary_strategy
            )
        if self.canary_strategy is CanaryStrategy.INCLUDE:
            canary_size = create_canary(99, self.canary_prefix).size
            if canary_size >= self.hard_limit:
                raise ConfigurationError(
                    "hard_limit leaves no room for canary classes",
                    field="hard_limit",
                    details={"hard_limit": self.hard_limit, "canary_size": canary_size},
                )

    def secondary_name(self, index: int) -> str:
        return self.secondary_pattern.format(index=index)

    def secondary_path(self, index: int) -> Path:
        return self.secondary_output_dir / self.secondary_name(index)
