"""HTTP surface for the gateway."""

from .main import create_app, run_web_server

__all__ = ["create_app", "run_web_server"]
