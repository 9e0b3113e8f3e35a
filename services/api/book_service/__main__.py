"""Entrypoint for ``python -m book_service``."""

import sys

from book_service.cli import main

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
