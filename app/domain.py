"""Domain records and plant health logic."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from app.exceptions import PlantValidationError

# Domain sanity bound for any plant record (one year)
PLANT_MAX_TIMEOUT_HOURS = 8760

DEFAULT_PLANT_ID = 1
DEFAULT_PLANT_NAME = "Our Plant"
DEFAULT_TIMEOUT_HOURS = 24


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Three-bucket plant health classification."""
    HEALTHY = "healthy"
    NEEDS_WATER = "needs_water"
    CRITICAL = "critical"


def _plural(count: int, unit: str) -> str:
    if count == 1:
        return f"1 {unit} ago"
    return f"{count} {unit}s ago"


@dataclass
class Plant:
    """The tracked plant and its watering state."""

    id: int = DEFAULT_PLANT_ID
    name: str = DEFAULT_PLANT_NAME
    last_watered: Optional[datetime] = None
    timeout_hours: int = DEFAULT_TIMEOUT_HOURS
    watered_by: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def time_since_watering(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        if self.last_watered is None:
            return None
        return (now or utcnow()) - self.last_watered

    def hours_since_watering(self, now: Optional[datetime] = None) -> Optional[float]:
        elapsed = self.time_since_watering(now)
        if elapsed is None:
            return None
        return elapsed.total_seconds() / 3600

    def health_status(self, now: Optional[datetime] = None) -> HealthStatus:
        """
        Classify plant health from elapsed time versus the timeout.

        healthy below half the timeout, needs_water from half the timeout up
        to the timeout, critical at or past the timeout or when never watered.
        """
        hours = self.hours_since_watering(now)
        if hours is None:
            return HealthStatus.CRITICAL
        if hours < self.timeout_hours * 0.5:
            return HealthStatus.HEALTHY
        if hours < self.timeout_hours:
            return HealthStatus.NEEDS_WATER
        return HealthStatus.CRITICAL

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        hours = self.hours_since_watering(now)
        if hours is None:
            return True
        return hours >= self.timeout_hours

    def next_watering_time(self) -> Optional[datetime]:
        if self.last_watered is None:
            return None
        return self.last_watered + timedelta(hours=self.timeout_hours)

    def time_until_due(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        """Time left before the timeout is reached; negative once overdue."""
        due = self.next_watering_time()
        if due is None:
            return None
        return due - (now or utcnow())

    def formatted_time_since_watering(self, now: Optional[datetime] = None) -> str:
        elapsed = self.time_since_watering(now)
        if elapsed is None:
            return "Never watered"

        total_seconds = elapsed.total_seconds()
        hours = int(total_seconds // 3600)
        if hours < 1:
            return _plural(int(total_seconds // 60), "minute")
        if hours < 24:
            return _plural(hours, "hour")
        return _plural(hours // 24, "day")

    def validate(self) -> None:
        """
        Check the plant invariants.

        Raises:
            PlantValidationError: naming the first violated field
        """
        if not self.name:
            raise PlantValidationError("name", "plant name cannot be empty")
        if self.timeout_hours <= 0:
            raise PlantValidationError("timeout_hours", "timeout hours must be positive")
        if self.timeout_hours > PLANT_MAX_TIMEOUT_HOURS:
            raise PlantValidationError(
                "timeout_hours",
                f"timeout hours cannot exceed {PLANT_MAX_TIMEOUT_HOURS} (1 year)",
            )


@dataclass
class User:
    """An authenticated identity."""
    email: str
    name: str = ""
    picture: str = ""
    is_admin: bool = False
    joined_at: datetime = field(default_factory=utcnow)


@dataclass
class AdminConfig:
    """System-wide settings: timeout and allowlists."""
    timeout_hours: int = DEFAULT_TIMEOUT_HOURS
    allowed_emails: List[str] = field(default_factory=list)
    admin_emails: List[str] = field(default_factory=list)
    last_modified: Optional[datetime] = None
    modified_by: str = ""


@dataclass
class WateringEvent:
    """One entry in the water/reset log."""
    action: str
    actor: str = ""
    occurred_at: datetime = field(default_factory=utcnow)
