"""Custom exceptions for the watering service."""


class WateredException(Exception):
    """Base exception for service errors."""
    pass


class ValidationError(WateredException):
    """Bad field values (should return 400)."""
    pass


class PlantValidationError(ValidationError):
    """A plant record violates one of its invariants."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class AuthenticationError(WateredException):
    """Missing session or failed OAuth2 exchange (should return 401)."""
    pass


class AuthorizationError(WateredException):
    """Authenticated but not permitted (should return 403)."""
    pass


class ConflictError(WateredException):
    """Resource already exists (should return 409)."""
    pass


class NotFoundError(WateredException):
    """Resource does not exist (should return 404)."""
    pass


class DemoLoginUnavailableError(WateredException):
    """Demo login requested while real credentials are configured (should return 404)."""
    pass


class StorageError(WateredException):
    """Persistence backend failure (should return 500)."""
    pass
