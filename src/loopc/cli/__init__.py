"""
LOOP Translator Command-Line Interface
======================================

This package provides the ``loopc`` command, a Click-based front end to
the LOOP-to-C translator.
"""

__all__ = ["loopc"]
