"""Admin configuration service: allowlist and timeout management."""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from app.domain import DEFAULT_TIMEOUT_HOURS, AdminConfig, utcnow
from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.services.plant_service import PlantService
from app.storage import Storage

logger = logging.getLogger(__name__)

# Operator-facing cap (one week), tighter than the plant's own bound
ADMIN_MIN_TIMEOUT_HOURS = 1
ADMIN_MAX_TIMEOUT_HOURS = 168


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AdminService:
    """CRUD over the admin config, kept in sync with the plant timeout."""

    def __init__(
        self,
        storage: Storage,
        plant_service: PlantService,
        seed_allowed_emails: List[str],
        seed_admin_emails: List[str],
    ):
        """
        Initialize the admin service.

        Args:
            storage: Storage backend
            plant_service: Plant service used to keep the plant timeout in sync
            seed_allowed_emails: Allowlist written to storage when no config exists
            seed_admin_emails: Admin list written to storage when no config exists
        """
        self.storage = storage
        self.plant_service = plant_service
        self.seed_allowed_emails = [normalize_email(e) for e in seed_allowed_emails if normalize_email(e)]
        self.seed_admin_emails = [normalize_email(e) for e in seed_admin_emails if normalize_email(e)]
        self._lock = threading.RLock()

    def get_config(self) -> AdminConfig:
        """Return the stored config, seeding it from the static lists on first read."""
        with self._lock:
            admin_config = self.storage.get_admin_config()
            if admin_config is None:
                admin_config = self._default_config()
                self.storage.save_admin_config(admin_config)
                logger.info(
                    f"Created default admin config ({len(admin_config.allowed_emails)} allowed, "
                    f"{len(admin_config.admin_emails)} admins)"
                )
            return admin_config

    def update_timeout(self, hours: int, actor: Optional[str] = None) -> AdminConfig:
        if hours < ADMIN_MIN_TIMEOUT_HOURS or hours > ADMIN_MAX_TIMEOUT_HOURS:
            raise ValidationError(
                f"Timeout must be between {ADMIN_MIN_TIMEOUT_HOURS} and {ADMIN_MAX_TIMEOUT_HOURS} hours"
            )

        with self._lock:
            admin_config = self.get_config()
            # The plant record is what the frontend reads; it goes first so a
            # failed plant save leaves the stored config untouched
            self.plant_service.set_timeout(hours)
            admin_config.timeout_hours = hours
            self._stamp(admin_config, actor)
            self.storage.save_admin_config(admin_config)

        logger.info(f"Timeout updated to {hours} hours by {actor or 'unknown'}")
        return admin_config

    def list_users(self) -> Tuple[List[str], List[str]]:
        admin_config = self.get_config()
        return admin_config.allowed_emails, admin_config.admin_emails

    def add_user(self, email: str, actor: Optional[str] = None) -> str:
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")
        if "@" not in email or "." not in email:
            raise ValidationError("Invalid email format")

        with self._lock:
            admin_config = self.get_config()
            if email in admin_config.allowed_emails:
                raise ConflictError("Email already exists in whitelist")
            admin_config.allowed_emails.append(email)
            self._stamp(admin_config, actor)
            self.storage.save_admin_config(admin_config)

        logger.info(f"Added {email} to allowed users")
        return email

    def remove_user(self, email: str, actor: Optional[str] = None) -> str:
        """Remove an email from the allowlist; admin rights go with it."""
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email parameter is required")

        with self._lock:
            admin_config = self.get_config()
            if email not in admin_config.allowed_emails:
                raise NotFoundError("Email not found in whitelist")
            admin_config.allowed_emails = [e for e in admin_config.allowed_emails if e != email]
            if email in admin_config.admin_emails:
                admin_config.admin_emails = [e for e in admin_config.admin_emails if e != email]
                logger.info(f"Revoked admin rights for {email}")
            self._stamp(admin_config, actor)
            self.storage.save_admin_config(admin_config)

        logger.info(f"Removed {email} from allowed users")
        return email

    def stats(self) -> Dict[str, Any]:
        admin_config = self.get_config()
        plant = self.storage.get_plant()
        watered = plant is not None and plant.last_watered is not None

        stats: Dict[str, Any] = {
            "total_users": len(admin_config.allowed_emails),
            "admin_users": len(admin_config.admin_emails),
            "timeout_hours": admin_config.timeout_hours,
            "plant_watered": watered,
            "last_watered": None,
            "watered_by": None,
            "total_events": self.storage.count_events(),
            "system_status": "healthy",
        }
        if watered:
            stats["last_watered"] = plant.last_watered
            stats["watered_by"] = plant.watered_by
        return stats

    def _default_config(self) -> AdminConfig:
        allowed = list(self.seed_allowed_emails)
        for email in self.seed_admin_emails:
            if email not in allowed:
                allowed.append(email)
        return AdminConfig(
            timeout_hours=DEFAULT_TIMEOUT_HOURS,
            allowed_emails=allowed,
            admin_emails=list(self.seed_admin_emails),
            last_modified=utcnow(),
            modified_by="system",
        )

    @staticmethod
    def _stamp(admin_config: AdminConfig, actor: Optional[str]) -> None:
        admin_config.last_modified = utcnow()
        admin_config.modified_by = actor or ""


# Global singleton
_admin_service: Optional[AdminService] = None
_admin_service_lock = threading.Lock()


def get_admin_service() -> AdminService:
    """Get the global AdminService instance."""
    global _admin_service
    if _admin_service is None:
        with _admin_service_lock:
            if _admin_service is None:
                from app.config import config
                from app.services.plant_service import get_plant_service
                from app.storage import get_storage

                _admin_service = AdminService(
                    storage=get_storage(),
                    plant_service=get_plant_service(),
                    seed_allowed_emails=config.get_allowed_emails(),
                    seed_admin_emails=config.get_admin_emails(),
                )
    return _admin_service


def reset_admin_service() -> None:
    """Reset the admin service singleton (for testing)."""
    global _admin_service
    with _admin_service_lock:
        _admin_service = None
