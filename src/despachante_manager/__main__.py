"""Module entry point for python -m despachante_manager."""

from __future__ import annotations

from despachante_manager.app import main


if __name__ == "__main__":
    raise SystemExit(main())
