"""
ULog SDK Command-Line Interface
===============================

This package provides command-line tools for the ULog SDK:

- **ulogdump**: Inspect, list and validate ULog files

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["ulogdump"]
