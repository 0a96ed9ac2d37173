"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Response model serialized with camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)


class PlantResponse(BaseModel):
    """Plant record with derived health fields."""
    id: int = Field(..., description="Plant identifier")
    name: str = Field(..., description="Display name")
    last_watered: Optional[datetime] = Field(default=None, description="Last watering time, null if never watered")
    timeout_hours: int = Field(..., description="Hours until the plant is critically overdue")
    watered_by: str = Field(default="", description="Email of the last person who watered the plant")
    created_at: datetime = Field(..., description="Record creation time")
    updated_at: datetime = Field(..., description="Last update time")
    health_status: str = Field(..., description="healthy, needs_water or critical")
    time_since_watering: str = Field(..., description="Human-readable elapsed time")
    hours_since_watering: Optional[float] = Field(default=None, description="Elapsed hours since watering")
    is_overdue: bool = Field(..., description="Whether the timeout has been reached")
    time_until_due: Optional[float] = Field(default=None, description="Seconds until due, negative when overdue")


class PlantActionResponse(BaseModel):
    """Response for water, settings and reset actions."""
    success: bool = Field(default=True)
    message: str = Field(..., description="Outcome message")
    plant: PlantResponse = Field(..., description="Updated plant")


class PlantStatusResponse(BaseModel):
    """Response model for the plant status endpoint."""
    status: str = Field(..., description="healthy, needs_water or critical")
    time_since_watering_formatted: str = Field(..., description="Human-readable elapsed time")
    hours_since_watering: Optional[float] = Field(default=None, description="Elapsed hours since watering")
    is_overdue: bool = Field(..., description="Whether the timeout has been reached")
    time_until_due: Optional[float] = Field(default=None, description="Seconds until due, negative when overdue")


class PlantTimerResponse(BaseModel):
    """Response model for the plant timer endpoint."""
    last_watered: Optional[datetime] = Field(default=None)
    time_since_watering: Optional[float] = Field(default=None, description="Elapsed seconds since watering")
    time_since_watering_formatted: str = Field(...)
    hours_since_watering: Optional[float] = Field(default=None)
    timeout_hours: int = Field(...)
    next_watering_time: Optional[datetime] = Field(default=None)
    time_until_due: Optional[float] = Field(default=None, description="Seconds until due, negative when overdue")
    is_overdue: bool = Field(...)


class PlantSettingsRequest(BaseModel):
    """Partial settings update; omitted or null fields are left unchanged."""
    name: Optional[str] = Field(default=None, description="New display name")
    timeout_hours: Optional[int] = Field(default=None, description="New timeout in hours (1-8760)")


class UserInfo(BaseModel):
    email: str
    name: str
    is_admin: bool


class AuthStatusResponse(BaseModel):
    """Response model for the auth status endpoint."""
    authenticated: bool = Field(...)
    user: Optional[UserInfo] = Field(default=None, description="Present when authenticated")


class DemoLoginRequest(BaseModel):
    email: str = Field(..., description="Email to log in as")
    name: Optional[str] = Field(default=None, description="Display name")


class DemoLoginResponse(BaseModel):
    success: bool = Field(default=True)
    user: UserInfo = Field(...)


class AdminConfigResponse(BaseModel):
    """Stored admin configuration."""
    timeout_hours: int = Field(...)
    allowed_emails: List[str] = Field(default_factory=list)
    admin_emails: List[str] = Field(default_factory=list)
    last_modified: Optional[datetime] = Field(default=None)
    modified_by: str = Field(default="")


class TimeoutUpdateRequest(CamelModel):
    timeout_hours: int = Field(..., alias="timeoutHours", description="New timeout in hours (1-168)")


class TimeoutUpdateResponse(CamelModel):
    success: bool = Field(default=True)
    timeout_hours: int = Field(..., alias="timeoutHours")
    message: str = Field(...)


class UsersResponse(CamelModel):
    allowed_emails: List[str] = Field(default_factory=list, alias="allowedEmails")
    admin_emails: List[str] = Field(default_factory=list, alias="adminEmails")


class AddUserRequest(BaseModel):
    email: str = Field(..., description="Email to add to the allowlist")


class UserChangeResponse(BaseModel):
    success: bool = Field(default=True)
    message: str = Field(...)
    email: str = Field(...)


class WateringEventResponse(BaseModel):
    action: str = Field(..., description="water or reset")
    actor: str = Field(default="", description="Email of the user who acted")
    occurred_at: datetime = Field(...)


class HistoryResponse(CamelModel):
    current_state: Optional[PlantResponse] = Field(default=None, alias="currentState")
    events: List[WateringEventResponse] = Field(default_factory=list)


class StatsResponse(CamelModel):
    """Usage statistics; lastWatered and wateredBy only when the plant was watered."""
    total_users: int = Field(..., alias="totalUsers")
    admin_users: int = Field(..., alias="adminUsers")
    timeout_hours: int = Field(..., alias="timeoutHours")
    plant_watered: bool = Field(..., alias="plantWatered")
    last_watered: Optional[datetime] = Field(default=None, alias="lastWatered")
    watered_by: Optional[str] = Field(default=None, alias="wateredBy")
    total_events: int = Field(default=0, alias="totalEvents")
    system_status: str = Field(default="healthy", alias="systemStatus")


class HealthResponse(BaseModel):
    """Response model for health endpoint."""
    status: str = Field(default="ok", description="Service status")
    service: str = Field(default="watered", description="Service name")


class ApiStatusResponse(BaseModel):
    """Response model for the API status endpoint."""
    status: str = Field(default="ok")
    service: str = Field(default="watered-api")
    version: str = Field(...)
    timestamp: datetime = Field(...)
    uptime_seconds: float = Field(...)
    uptime_formatted: str = Field(...)
