"""High-level import-first runtime API for synthetic dataset generation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from .. import defaults
from ..engine.assembly import build_dataset
from ..runtime.logging_utils import WarningCollector, setup_run_logger
from ..schema.metadata import as_frame
from ..schema.samples import load_metadata, load_metadata_document
from ..schema.validation import validate_metadata
from .models import GenerateResult, RunConfig

_VALID_LOG_LEVELS = {"info", "quiet"}


def _coerce_int(value: Any, fallback: int, minimum: int | None = None) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = int(fallback)
    if minimum is not None:
        parsed = max(minimum, parsed)
    return parsed


def _normalize_choice(value: Any, allowed: set[str], fallback: str) -> str:
    text = str(value).strip().lower() if value is not None else ""
    if text in allowed:
        return text
    return fallback


def _split_metadata(metadata: Any) -> tuple[pd.DataFrame, pd.DataFrame, dict[str, Any]]:
    if isinstance(metadata, tuple):
        if len(metadata) != 2:
            raise ValueError("Metadata tuple must be (variables, variable_details)")
        variables, details = metadata
        return (
            as_frame(variables, "variables"),
            as_frame(details, "variable_details"),
            {},
        )

    document = load_metadata_document(metadata)
    settings = document.get("settings", {})
    if not isinstance(settings, dict):
        settings = {}
    variables, details = load_metadata(document)
    return variables, details, settings


class MockDataSynthesizer:
    """High-level facade for metadata-driven mock data generation."""

    def __init__(self, metadata: Any, run_config: RunConfig | None = None):
        self._variables, self._details, self._settings = _split_metadata(metadata)
        self.run_config = run_config or RunConfig()

    @property
    def variables(self) -> pd.DataFrame:
        return self._variables

    @property
    def variable_details(self) -> pd.DataFrame:
        return self._details

    def generate(self) -> GenerateResult:
        settings = self._settings
        log_level = _normalize_choice(
            self.run_config.log_level
            if self.run_config.log_level is not None
            else settings.get("log_level", defaults.DEFAULT_LOG_LEVEL),
            _VALID_LOG_LEVELS,
            defaults.DEFAULT_LOG_LEVEL,
        )
        n_rows = _coerce_int(
            self.run_config.n_rows,
            settings.get("n_rows", defaults.DEFAULT_ROWS),
            minimum=1,
        )
        seed = _coerce_int(
            self.run_config.seed,
            settings.get("seed", defaults.DEFAULT_SEED),
        )
        scope = (
            self.run_config.scope
            if self.run_config.scope is not None
            else settings.get("scope")
        )
        log_dir = (
            self.run_config.log_dir
            if self.run_config.log_dir is not None
            else settings.get("log_dir")
        )

        logger, log_path = setup_run_logger(
            log_dir=log_dir, name="mockdata", log_level=log_level
        )
        collector = WarningCollector()
        logger.addHandler(collector)
        try:
            if self.run_config.validate:
                warnings, errors = validate_metadata(self._variables, self._details)
                if warnings:
                    logger.warning("[METADATA WARNINGS]")
                    for warning in warnings:
                        logger.warning(f"  - {warning}")
                if errors:
                    raise ValueError(
                        "Metadata validation failed: " + "; ".join(errors)
                    )

            dataframe, skipped = build_dataset(
                self._variables,
                self._details,
                n=n_rows,
                seed=seed,
                scope=scope,
                include_derived=bool(self.run_config.include_derived),
                logger=logger,
            )
        finally:
            logger.removeHandler(collector)

        if log_level != "quiet":
            logger.info(
                f"[FINAL] rows={n_rows} columns={dataframe.shape[1]} "
                f"skipped={len(skipped)} seed={seed}"
            )

        return GenerateResult(
            dataframe=dataframe,
            n_rows=n_rows,
            seed=seed,
            warnings=list(collector.messages),
            skipped=skipped,
            log_path=Path(log_path) if log_path is not None else None,
        )


def generate(metadata: Any, run_config: RunConfig | None = None) -> GenerateResult:
    """Convenience function for one-off generation calls."""

    return MockDataSynthesizer(metadata, run_config=run_config).generate()
