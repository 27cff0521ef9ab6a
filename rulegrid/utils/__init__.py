"""
Utilities for use with rulegrid.
"""

# ruff: noqa: F401

from . import asyncs
