"""CLI entrypoint for anvil_recover."""

from __future__ import annotations

import sys

from .recover import main


if __name__ == "__main__":
    sys.exit(main())
