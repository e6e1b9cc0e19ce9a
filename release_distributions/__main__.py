"""Allow ``python -m release_distributions``."""

from __future__ import annotations

from .cli import main

main()
