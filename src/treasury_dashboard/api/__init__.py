"""HTTP API."""

from treasury_dashboard.api.server import create_app

__all__ = ["create_app"]
