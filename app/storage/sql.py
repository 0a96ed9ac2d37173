"""SQLAlchemy storage backend."""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import AdminConfigRow, Base, PlantRow, UserRow, WateringEventRow
from app.db.session import make_engine, make_session_factory
from app.domain import AdminConfig, Plant, User, WateringEvent
from app.exceptions import StorageError
from app.storage.base import Storage

logger = logging.getLogger(__name__)

ADMIN_CONFIG_ID = 1


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back out
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlStorage(Storage):
    """Storage backed by a relational database through SQLAlchemy."""

    def __init__(self, database_url: str):
        try:
            self._engine = make_engine(database_url)
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to initialize database: {e}") from e
        self._session_factory = make_session_factory(self._engine)
        logger.info(f"Database storage initialized ({self._engine.url.get_backend_name()})")

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise StorageError(f"Failed to {operation}: {e}") from e
        finally:
            session.close()

    def get_plant(self) -> Optional[Plant]:
        with self._session("get plant state") as session:
            row = session.execute(select(PlantRow).limit(1)).scalar_one_or_none()
            if row is None:
                return None
            return Plant(
                id=row.id,
                name=row.name,
                last_watered=_aware(row.last_watered),
                timeout_hours=row.timeout_hours,
                watered_by=row.watered_by or "",
                created_at=_aware(row.created_at),
                updated_at=_aware(row.updated_at),
            )

    def save_plant(self, plant: Plant) -> None:
        with self._session("save plant state") as session:
            session.merge(PlantRow(
                id=plant.id,
                name=plant.name,
                last_watered=plant.last_watered,
                timeout_hours=plant.timeout_hours,
                watered_by=plant.watered_by,
                created_at=plant.created_at,
                updated_at=plant.updated_at,
            ))

    def get_user(self, email: str) -> Optional[User]:
        with self._session("get user") as session:
            row = session.get(UserRow, email)
            if row is None:
                return None
            return self._to_user(row)

    def save_user(self, user: User) -> None:
        with self._session("save user") as session:
            session.merge(UserRow(
                email=user.email,
                name=user.name,
                picture=user.picture,
                is_admin=user.is_admin,
                joined_at=user.joined_at,
            ))

    def list_users(self) -> List[User]:
        with self._session("list users") as session:
            rows = session.execute(select(UserRow).order_by(UserRow.email)).scalars().all()
            return [self._to_user(row) for row in rows]

    def get_admin_config(self) -> Optional[AdminConfig]:
        with self._session("get admin config") as session:
            row = session.get(AdminConfigRow, ADMIN_CONFIG_ID)
            if row is None:
                return None
            return AdminConfig(
                timeout_hours=row.timeout_hours,
                allowed_emails=list(row.allowed_emails or []),
                admin_emails=list(row.admin_emails or []),
                last_modified=_aware(row.last_modified),
                modified_by=row.modified_by or "",
            )

    def save_admin_config(self, admin_config: AdminConfig) -> None:
        with self._session("save admin config") as session:
            session.merge(AdminConfigRow(
                id=ADMIN_CONFIG_ID,
                timeout_hours=admin_config.timeout_hours,
                allowed_emails=list(admin_config.allowed_emails),
                admin_emails=list(admin_config.admin_emails),
                last_modified=admin_config.last_modified,
                modified_by=admin_config.modified_by,
            ))

    def add_event(self, event: WateringEvent) -> None:
        with self._session("record watering event") as session:
            session.add(WateringEventRow(
                action=event.action,
                actor=event.actor,
                occurred_at=event.occurred_at,
            ))

    def list_events(self, limit: Optional[int] = None) -> List[WateringEvent]:
        with self._session("list watering events") as session:
            query = select(WateringEventRow).order_by(
                WateringEventRow.occurred_at.desc(), WateringEventRow.id.desc()
            )
            if limit is not None:
                query = query.limit(limit)
            rows = session.execute(query).scalars().all()
            return [
                WateringEvent(
                    action=row.action,
                    actor=row.actor or "",
                    occurred_at=_aware(row.occurred_at),
                )
                for row in rows
            ]

    def count_events(self) -> int:
        with self._session("count watering events") as session:
            return session.execute(select(func.count(WateringEventRow.id))).scalar_one()

    def close(self) -> None:
        self._engine.dispose()
        logger.info("Database storage closed")

    @staticmethod
    def _to_user(row: UserRow) -> User:
        return User(
            email=row.email,
            name=row.name or "",
            picture=row.picture or "",
            is_admin=bool(row.is_admin),
            joined_at=_aware(row.joined_at),
        )
