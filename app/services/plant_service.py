"""Plant service: watering, settings and reset on top of storage."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from app.domain import (
    DEFAULT_PLANT_ID,
    DEFAULT_PLANT_NAME,
    DEFAULT_TIMEOUT_HOURS,
    HealthStatus,
    Plant,
    WateringEvent,
    utcnow,
)
from app.exceptions import PlantValidationError, ValidationError
from app.storage import Storage

logger = logging.getLogger(__name__)

ACTION_WATER = "water"
ACTION_RESET = "reset"


@dataclass
class PlantStatus:
    """Health projection of the plant."""
    status: HealthStatus
    time_since_watering_formatted: str
    hours_since_watering: Optional[float]
    is_overdue: bool
    time_until_due: Optional[timedelta]


@dataclass
class PlantTimer:
    """Timer projection of the plant."""
    last_watered: Optional[datetime]
    time_since_watering: Optional[timedelta]
    time_since_watering_formatted: str
    hours_since_watering: Optional[float]
    timeout_hours: int
    next_watering_time: Optional[datetime]
    time_until_due: Optional[timedelta]
    is_overdue: bool


class PlantService:
    """Orchestrates storage and plant domain logic."""

    def __init__(self, storage: Storage):
        self.storage = storage
        self._lock = threading.RLock()

    def get_plant(self) -> Plant:
        """Return the plant, creating and saving the default one on first access."""
        with self._lock:
            plant = self.storage.get_plant()
            if plant is None:
                plant = self._create_default_plant()
                self.storage.save_plant(plant)
                logger.info("Created default plant")
            return plant

    def water(self, actor: str) -> Plant:
        if not actor:
            raise ValidationError("watered_by field is required")

        with self._lock:
            plant = self.get_plant()
            now = utcnow()
            plant.last_watered = now
            plant.watered_by = actor
            plant.updated_at = now
            self.storage.save_plant(plant)
            self.storage.add_event(WateringEvent(action=ACTION_WATER, actor=actor, occurred_at=now))

        logger.info(f"Plant watered by {actor} at {now.isoformat()}")
        return plant

    def get_status(self) -> PlantStatus:
        plant = self.get_plant()
        now = utcnow()
        return PlantStatus(
            status=plant.health_status(now),
            time_since_watering_formatted=plant.formatted_time_since_watering(now),
            hours_since_watering=plant.hours_since_watering(now),
            is_overdue=plant.is_overdue(now),
            time_until_due=plant.time_until_due(now),
        )

    def get_timer(self) -> PlantTimer:
        plant = self.get_plant()
        now = utcnow()
        return PlantTimer(
            last_watered=plant.last_watered,
            time_since_watering=plant.time_since_watering(now),
            time_since_watering_formatted=plant.formatted_time_since_watering(now),
            hours_since_watering=plant.hours_since_watering(now),
            timeout_hours=plant.timeout_hours,
            next_watering_time=plant.next_watering_time(),
            time_until_due=plant.time_until_due(now),
            is_overdue=plant.is_overdue(now),
        )

    def update_settings(self, name: Optional[str] = None, timeout_hours: Optional[int] = None) -> Plant:
        """
        Partially update plant settings.

        None leaves a field unchanged. An empty name or a zero timeout is
        treated the same way, for clients that send those as "no change".

        Raises:
            PlantValidationError: negative timeout or an invalid result
        """
        with self._lock:
            plant = self.get_plant()

            if name:
                plant.name = name

            if timeout_hours:
                if timeout_hours < 0:
                    raise PlantValidationError("timeout_hours", "timeout hours cannot be negative")
                plant.timeout_hours = timeout_hours

            plant.validate()
            plant.updated_at = utcnow()
            self.storage.save_plant(plant)

        logger.info(f"Plant settings updated: name={plant.name}, timeout={plant.timeout_hours} hours")
        return plant

    def set_timeout(self, timeout_hours: int) -> Plant:
        """Set the plant timeout, checked against the domain bound only."""
        with self._lock:
            plant = self.get_plant()
            plant.timeout_hours = timeout_hours
            plant.validate()
            plant.updated_at = utcnow()
            self.storage.save_plant(plant)
        return plant

    def reset(self, actor: Optional[str] = None) -> Plant:
        """Return the plant to the never-watered state."""
        with self._lock:
            plant = self.get_plant()
            now = utcnow()
            plant.last_watered = None
            plant.watered_by = ""
            plant.updated_at = now
            self.storage.save_plant(plant)
            self.storage.add_event(WateringEvent(action=ACTION_RESET, actor=actor or "", occurred_at=now))

        logger.info("Plant reset to unwatered state")
        return plant

    def history(self, limit: Optional[int] = 50) -> List[WateringEvent]:
        return self.storage.list_events(limit)

    @staticmethod
    def _create_default_plant() -> Plant:
        now = utcnow()
        return Plant(
            id=DEFAULT_PLANT_ID,
            name=DEFAULT_PLANT_NAME,
            last_watered=None,
            timeout_hours=DEFAULT_TIMEOUT_HOURS,
            watered_by="",
            created_at=now,
            updated_at=now,
        )


# Global singleton
_plant_service: Optional[PlantService] = None
_plant_service_lock = threading.Lock()


def get_plant_service() -> PlantService:
    """Get the global PlantService instance."""
    global _plant_service
    if _plant_service is None:
        with _plant_service_lock:
            if _plant_service is None:
                from app.storage import get_storage
                _plant_service = PlantService(get_storage())
    return _plant_service


def reset_plant_service() -> None:
    """Reset the plant service singleton (for testing)."""
    global _plant_service
    with _plant_service_lock:
        _plant_service = None
