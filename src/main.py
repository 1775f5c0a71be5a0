"""Run script.

Why it exists:
- Allows `python -m main` from inside `src/` during development.
- Keeps a plain entry point next to the `views-migrate` console script.
"""

from __future__ import annotations

import sys

# Windows terminals (cp1252) cannot encode the banner bullets.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
