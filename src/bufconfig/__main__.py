"""``python -m bufconfig``: check, migrate and locate buf configuration files from a shell.

Same commands as the ``bufconfig`` console script; see :mod:`bufconfig.cli`.
"""

from __future__ import annotations

import sys

from .cli import main


if __name__ == "__main__":  # pragma: no cover - exercised via python -m
    raise SystemExit(main(sys.argv[1:]))
