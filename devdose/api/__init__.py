"""Read API over published posts."""

from devdose.api.app import create_app

__all__ = ["create_app"]
