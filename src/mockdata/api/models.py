"""Public runtime models for the import-first API."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd


@dataclass
class RunConfig:
    """Top-level runtime options for synthetic generation."""

    n_rows: int | None = None
    seed: int | None = None
    scope: str | None = None
    log_level: str | None = None
    log_dir: str | None = None
    validate: bool = True
    include_derived: bool = False


@dataclass
class GenerateResult:
    """Result payload returned by high-level generation APIs."""

    dataframe: pd.DataFrame
    n_rows: int
    seed: int
    warnings: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    log_path: Path | None = None

    def generated_columns(self) -> list[str]:
        """Return the names of columns populated by the generators."""

        return [name for name in self.dataframe.columns if name not in self.skipped]
