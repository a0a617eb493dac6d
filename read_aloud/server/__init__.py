"""HTTP control surface (FastAPI) for the read-aloud loop."""

from read_aloud.server.app import create_app

__all__ = ["create_app"]
