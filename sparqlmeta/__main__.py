#!/usr/bin/env python3
"""
sparqlmeta CLI

This module allows sparqlmeta to be run as:
    python -m sparqlmeta

Or installed and run as:
    sparqlmeta
"""

from .cli import main

if __name__ == "__main__":
    main()
