"""
corsgate - CORS-enabling reverse proxy and CSS-selector extraction gateway.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config, load_config
from .gateway import RequestRouter

__all__ = ["__version__", "Config", "load_config", "RequestRouter"]
