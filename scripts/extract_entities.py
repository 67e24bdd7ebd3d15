#!/usr/bin/env python3
"""CLI entrypoint for extracting and disambiguating entities.

Usage:
    python scripts/extract_entities.py extract "Acme Inc. hired John Smith."
    python scripts/extract_entities.py extract --file notes.txt --output json
    python scripts/extract_entities.py disambiguate entities.json --text-file notes.txt
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add the project root to path so the ``src`` package resolves
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.interface.extraction_cli import run  # noqa: E402


def main() -> None:
    """Launch the extraction CLI."""
    run()


if __name__ == "__main__":
    main()
