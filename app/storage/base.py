"""Base class for storage backends."""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain import AdminConfig, Plant, User, WateringEvent


class Storage(ABC):
    """
    Key-value persistence for the plant, users, admin config and event log.

    Backends return copies: mutating a returned record has no effect until it
    is passed back to the matching save method.
    """

    @abstractmethod
    def get_plant(self) -> Optional[Plant]:
        """Return the plant record, or None if it was never created."""
        pass

    @abstractmethod
    def save_plant(self, plant: Plant) -> None:
        pass

    @abstractmethod
    def get_user(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    def save_user(self, user: User) -> None:
        """Insert or replace the user keyed by email."""
        pass

    @abstractmethod
    def list_users(self) -> List[User]:
        pass

    @abstractmethod
    def get_admin_config(self) -> Optional[AdminConfig]:
        """Return the admin config, or None if it was never created."""
        pass

    @abstractmethod
    def save_admin_config(self, admin_config: AdminConfig) -> None:
        pass

    @abstractmethod
    def add_event(self, event: WateringEvent) -> None:
        pass

    @abstractmethod
    def list_events(self, limit: Optional[int] = None) -> List[WateringEvent]:
        """Return watering events, newest first."""
        pass

    @abstractmethod
    def count_events(self) -> int:
        pass

    def close(self) -> None:
        """Release backend resources."""
        pass
