"""Command-line interface for applying pending Katello upgrade steps."""
from __future__ import annotations

from services.upgrade import main


if __name__ == "__main__":  # pragma: no cover - thin wrapper
    raise SystemExit(main())
