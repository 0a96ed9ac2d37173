"""Plant API routes."""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.auth import SessionUser, require_admin, require_user
from app.domain import Plant, utcnow
from app.exceptions import StorageError, ValidationError
from app.models import (
    PlantActionResponse,
    PlantResponse,
    PlantSettingsRequest,
    PlantStatusResponse,
    PlantTimerResponse,
)
from app.services.plant_service import PlantService, get_plant_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _seconds(value: Optional[timedelta]) -> Optional[float]:
    return value.total_seconds() if value is not None else None


def plant_to_response(plant: Plant) -> PlantResponse:
    """Project a plant record and its derived health fields."""
    now = utcnow()
    return PlantResponse(
        id=plant.id,
        name=plant.name,
        last_watered=plant.last_watered,
        timeout_hours=plant.timeout_hours,
        watered_by=plant.watered_by,
        created_at=plant.created_at,
        updated_at=plant.updated_at,
        health_status=plant.health_status(now).value,
        time_since_watering=plant.formatted_time_since_watering(now),
        hours_since_watering=plant.hours_since_watering(now),
        is_overdue=plant.is_overdue(now),
        time_until_due=_seconds(plant.time_until_due(now)),
    )


@router.get("", response_model=PlantResponse)
async def get_plant(plant_service: PlantService = Depends(get_plant_service)):
    """Get the plant with its computed health state."""
    try:
        return plant_to_response(plant_service.get_plant())
    except StorageError as e:
        logger.error(f"Failed to get plant: {e}")
        raise HTTPException(status_code=500, detail="Failed to get plant state")


@router.post("/water", response_model=PlantActionResponse)
async def water_plant(
    user: SessionUser = Depends(require_user),
    plant_service: PlantService = Depends(get_plant_service),
):
    """Record a watering by the logged-in user."""
    try:
        plant = plant_service.water(user.email)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        logger.error(f"Failed to water plant: {e}")
        raise HTTPException(status_code=500, detail="Failed to water plant")

    return PlantActionResponse(
        success=True,
        message="Plant watered successfully! 🌱",
        plant=plant_to_response(plant),
    )


@router.get("/status", response_model=PlantStatusResponse)
async def get_plant_status(plant_service: PlantService = Depends(get_plant_service)):
    """Get just the plant health status."""
    try:
        status = plant_service.get_status()
    except StorageError as e:
        logger.error(f"Failed to get plant status: {e}")
        raise HTTPException(status_code=500, detail="Failed to get plant status")

    return PlantStatusResponse(
        status=status.status.value,
        time_since_watering_formatted=status.time_since_watering_formatted,
        hours_since_watering=status.hours_since_watering,
        is_overdue=status.is_overdue,
        time_until_due=_seconds(status.time_until_due),
    )


@router.get("/timer", response_model=PlantTimerResponse)
async def get_plant_timer(plant_service: PlantService = Depends(get_plant_service)):
    """Get plant timer information."""
    try:
        timer = plant_service.get_timer()
    except StorageError as e:
        logger.error(f"Failed to get plant timer: {e}")
        raise HTTPException(status_code=500, detail="Failed to get plant timer")

    return PlantTimerResponse(
        last_watered=timer.last_watered,
        time_since_watering=_seconds(timer.time_since_watering),
        time_since_watering_formatted=timer.time_since_watering_formatted,
        hours_since_watering=timer.hours_since_watering,
        timeout_hours=timer.timeout_hours,
        next_watering_time=timer.next_watering_time,
        time_until_due=_seconds(timer.time_until_due),
        is_overdue=timer.is_overdue,
    )


@router.put("/settings", response_model=PlantActionResponse)
async def update_plant_settings(
    request: PlantSettingsRequest,
    user: SessionUser = Depends(require_admin),
    plant_service: PlantService = Depends(get_plant_service),
):
    """Update plant name and/or timeout (admin only)."""
    try:
        plant = plant_service.update_settings(name=request.name, timeout_hours=request.timeout_hours)
    except ValidationError as e:
        logger.warning(f"Rejected plant settings from {user.email}: {e}")
        raise HTTPException(status_code=400, detail=f"Failed to update plant settings: {e}")
    except StorageError as e:
        logger.error(f"Failed to update plant settings: {e}")
        raise HTTPException(status_code=500, detail="Failed to update plant settings")

    return PlantActionResponse(
        success=True,
        message="Plant settings updated successfully",
        plant=plant_to_response(plant),
    )


@router.post("/reset", response_model=PlantActionResponse)
async def reset_plant(
    user: SessionUser = Depends(require_admin),
    plant_service: PlantService = Depends(get_plant_service),
):
    """Reset the plant to the unwatered state (admin only)."""
    try:
        plant = plant_service.reset(actor=user.email)
    except StorageError as e:
        logger.error(f"Failed to reset plant: {e}")
        raise HTTPException(status_code=500, detail="Failed to reset plant")

    return PlantActionResponse(
        success=True,
        message="Plant reset to unwatered state",
        plant=plant_to_response(plant),
    )
