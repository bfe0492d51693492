#!/usr/bin/env python3
"""Entry point for ``python -m bitperm.cli``."""

from .bitperm_cli import entrypoint

if __name__ == "__main__":
    entrypoint()
