"""In-memory storage backend."""

import copy
import logging
import threading
from typing import Dict, List, Optional

from app.domain import AdminConfig, Plant, User, WateringEvent
from app.storage.base import Storage

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    """Dictionary-backed storage with one lock per logical record."""

    def __init__(self):
        self._plant: Optional[Plant] = None
        self._users: Dict[str, User] = {}
        self._admin_config: Optional[AdminConfig] = None
        self._events: List[WateringEvent] = []

        self._plant_lock = threading.Lock()
        self._users_lock = threading.Lock()
        self._config_lock = threading.Lock()
        self._events_lock = threading.Lock()

    def get_plant(self) -> Optional[Plant]:
        with self._plant_lock:
            return copy.deepcopy(self._plant)

    def save_plant(self, plant: Plant) -> None:
        with self._plant_lock:
            self._plant = copy.deepcopy(plant)

    def get_user(self, email: str) -> Optional[User]:
        with self._users_lock:
            return copy.deepcopy(self._users.get(email))

    def save_user(self, user: User) -> None:
        with self._users_lock:
            self._users[user.email] = copy.deepcopy(user)

    def list_users(self) -> List[User]:
        with self._users_lock:
            return [copy.deepcopy(user) for user in self._users.values()]

    def get_admin_config(self) -> Optional[AdminConfig]:
        with self._config_lock:
            return copy.deepcopy(self._admin_config)

    def save_admin_config(self, admin_config: AdminConfig) -> None:
        with self._config_lock:
            self._admin_config = copy.deepcopy(admin_config)

    def add_event(self, event: WateringEvent) -> None:
        with self._events_lock:
            self._events.append(copy.deepcopy(event))

    def list_events(self, limit: Optional[int] = None) -> List[WateringEvent]:
        with self._events_lock:
            events = [copy.deepcopy(event) for event in reversed(self._events)]
        if limit is not None:
            events = events[:limit]
        return events

    def count_events(self) -> int:
        with self._events_lock:
            return len(self._events)

    def close(self) -> None:
        logger.debug("Memory storage closed")
