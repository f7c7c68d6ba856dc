"""Module entrypoint for ``python -m tierforge``."""

from __future__ import annotations

from tierforge.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
