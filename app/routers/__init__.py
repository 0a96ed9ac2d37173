"""API routers."""

from app.routers import admin, auth, plant

__all__ = ["admin", "auth", "plant"]
