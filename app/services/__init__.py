"""Services module for the watering service."""

from app.services.plant_service import PlantService, get_plant_service, reset_plant_service
from app.services.admin_service import AdminService, get_admin_service, reset_admin_service

__all__ = [
    "PlantService",
    "get_plant_service",
    "reset_plant_service",
    "AdminService",
    "get_admin_service",
    "reset_admin_service",
]
