"""Database models for the watering service."""

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class PlantRow(Base):
    """Singleton plant row (id is always 1)."""
    __tablename__ = "plant_state"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    last_watered = Column(DateTime(timezone=True), nullable=True)
    timeout_hours = Column(Integer, nullable=False, default=24)
    watered_by = Column(String(255), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())


class UserRow(Base):
    __tablename__ = "users"

    email = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    picture = Column(String(1024), nullable=False, default="")
    is_admin = Column(Boolean, default=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())


class AdminConfigRow(Base):
    """Singleton admin configuration row; email lists are JSON arrays."""
    __tablename__ = "admin_config"

    id = Column(Integer, primary_key=True)
    timeout_hours = Column(Integer, nullable=False, default=24)
    allowed_emails = Column(JSON, nullable=False, default=list)
    admin_emails = Column(JSON, nullable=False, default=list)
    last_modified = Column(DateTime(timezone=True), nullable=True)
    modified_by = Column(String(255), nullable=False, default="")


class WateringEventRow(Base):
    __tablename__ = "watering_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(50), nullable=False, index=True)
    actor = Column(String(255), nullable=False, default="")
    occurred_at = Column(DateTime(timezone=True), nullable=False, index=True)
