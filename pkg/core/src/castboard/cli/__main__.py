#!/usr/bin/env python3
"""
CLI entry point for castboard.cli module.

This allows running: python -m castboard.cli
"""

from .main import cli

if __name__ == "__main__":
    cli()
