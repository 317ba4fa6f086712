"""Quick local sample run for mockdata."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent
SRC_PATH = PROJECT_ROOT / "src"
if SRC_PATH.exists() and str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from mockdata import MockDataSynthesizer, RunConfig, get_sample_metadata  # noqa: E402


def main() -> int:
    try:
        metadata = get_sample_metadata("survey")
        run_cfg = RunConfig(
            n_rows=5_000,
            seed=42,
            scope="cycle2",
            log_level="info",
        )
        result = MockDataSynthesizer(metadata, run_cfg).generate()
    except Exception as exc:
        print(f"[SAMPLE RUN ERROR] {exc}", file=sys.stderr)
        print("Tip: install dependencies with `pip install -e .`", file=sys.stderr)
        return 1

    print(
        f"[SAMPLE RUN] rows={result.n_rows} seed={result.seed} "
        f"columns={','.join(result.generated_columns())} "
        f"skipped={len(result.skipped)} warnings={len(result.warnings)}"
    )
    print(result.dataframe.head())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
