"""Punto de entrada: ``python -m metric_tool``."""

from __future__ import annotations

from metric_tool.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
