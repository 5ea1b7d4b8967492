"""
edidkit Command-Line Interface
==============================

This package provides the ``edidkit`` command-line tool, a Click-based
application with subcommands to dump, summarize and validate EDID files.
"""

__all__ = ["edidtool"]
