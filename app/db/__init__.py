"""Database module for the watering service."""

from app.db.session import make_engine, make_session_factory
from app.db.models import Base, PlantRow, UserRow, AdminConfigRow, WateringEventRow

__all__ = [
    "make_engine",
    "make_session_factory",
    "Base",
    "PlantRow",
    "UserRow",
    "AdminConfigRow",
    "WateringEventRow",
]
