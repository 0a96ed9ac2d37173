"""Admin API routes: configuration, allowlist, history and stats."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.auth import SessionUser, require_admin
from app.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from app.models import (
    AddUserRequest,
    AdminConfigResponse,
    HistoryResponse,
    StatsResponse,
    TimeoutUpdateRequest,
    TimeoutUpdateResponse,
    UserChangeResponse,
    UsersResponse,
    WateringEventResponse,
)
from app.routers.plant import plant_to_response
from app.services.admin_service import AdminService, get_admin_service
from app.services.plant_service import PlantService, get_plant_service

logger = logging.getLogger(__name__)

# Every admin route requires an admin session
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/config", response_model=AdminConfigResponse)
async def get_config(admin_service: AdminService = Depends(get_admin_service)):
    """Get the admin configuration, creating the default on first read."""
    try:
        admin_config = admin_service.get_config()
    except StorageError as e:
        logger.error(f"Failed to get admin config: {e}")
        raise HTTPException(status_code=500, detail="Failed to get admin config")

    return AdminConfigResponse(
        timeout_hours=admin_config.timeout_hours,
        allowed_emails=admin_config.allowed_emails,
        admin_emails=admin_config.admin_emails,
        last_modified=admin_config.last_modified,
        modified_by=admin_config.modified_by,
    )


@router.put("/config/timeout", response_model=TimeoutUpdateResponse)
async def update_timeout(
    request: TimeoutUpdateRequest,
    user: SessionUser = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Update the watering timeout; the plant timeout follows."""
    try:
        admin_service.update_timeout(request.timeout_hours, actor=user.email)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        logger.error(f"Failed to update timeout: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update config: {e}")

    return TimeoutUpdateResponse(
        success=True,
        timeout_hours=request.timeout_hours,
        message=f"Timeout updated to {request.timeout_hours} hours",
    )


@router.get("/users", response_model=UsersResponse)
async def list_users(admin_service: AdminService = Depends(get_admin_service)):
    """List allowed and admin emails."""
    try:
        allowed_emails, admin_emails = admin_service.list_users()
    except StorageError as e:
        logger.error(f"Failed to list users: {e}")
        raise HTTPException(status_code=500, detail="Failed to get admin config")

    return UsersResponse(allowed_emails=allowed_emails, admin_emails=admin_emails)


@router.post("/users", response_model=UserChangeResponse, status_code=201)
async def add_user(
    request: AddUserRequest,
    user: SessionUser = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Add an email to the allowlist."""
    try:
        email = admin_service.add_user(request.email, actor=user.email)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError as e:
        logger.error(f"Failed to add user: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update config: {e}")

    return UserChangeResponse(success=True, message=f"Added {email} to allowed users", email=email)


@router.delete("/users/{email}", response_model=UserChangeResponse)
async def remove_user(
    email: str,
    user: SessionUser = Depends(require_admin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Remove an email from the allowlist."""
    try:
        removed = admin_service.remove_user(email, actor=user.email)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        logger.error(f"Failed to remove user: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to update config: {e}")

    return UserChangeResponse(success=True, message=f"Removed {removed} from allowed users", email=removed)


@router.get("/history", response_model=HistoryResponse)
async def get_history(plant_service: PlantService = Depends(get_plant_service)):
    """Get the current plant state and the watering log, newest first."""
    try:
        plant = plant_service.get_plant()
        events = plant_service.history()
    except StorageError as e:
        logger.error(f"Failed to get history: {e}")
        raise HTTPException(status_code=500, detail="Failed to get plant history")

    return HistoryResponse(
        current_state=plant_to_response(plant),
        events=[
            WateringEventResponse(action=event.action, actor=event.actor, occurred_at=event.occurred_at)
            for event in events
        ],
    )


@router.get("/stats", response_model=StatsResponse, response_model_exclude_none=True)
async def get_stats(admin_service: AdminService = Depends(get_admin_service)):
    """Get usage statistics."""
    try:
        stats = admin_service.stats()
    except StorageError as e:
        logger.error(f"Failed to get stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to get stats")

    return StatsResponse(**stats)
