"""Module execution stub for the API-only mockdata package."""

from __future__ import annotations

import sys


def main() -> int:
    print(
        "mockdata does not provide a CLI. "
        "Use the Python API (mockdata.generate or mockdata.create_mock_data).",
        file=sys.stderr,
    )
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
