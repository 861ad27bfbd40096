# src/__init__.py — v1
"""docsim: document similarity detection and report synthesis."""

from docsim.version import __version__

__all__ = ["__version__"]
