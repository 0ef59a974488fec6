"""
Application package for the media download admin dashboard.

Modules are organized to separate the HTTP API, the download job worker,
platform search clients, and persistence so that each layer can evolve
independently.
"""

from .config import settings  # noqa: F401  (re-export for convenience)
