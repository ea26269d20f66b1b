"""Entry point for running ocr_card_engine as a module.

Usage:
    python -m ocr_card_engine <command> [options]
"""
from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
