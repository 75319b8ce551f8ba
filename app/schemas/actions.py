"""Request/response schemas for incident actions."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionCreate(BaseModel):
    incident_id: int = Field(..., ge=1)
    description: str = Field(..., max_length=20_000)
    action_date: date | None = Field(default=None, description="Defaults to today")
    status_id: int | None = Field(default=None, ge=1)

    @field_validator("description")
    @classmethod
    def require_description(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Action description is required")
        return v.strip()


class ActionUpdate(BaseModel):
    """Partial update. An explicit null action_date resets to today; null status_id clears it."""

    description: str | None = Field(default=None, max_length=20_000)
    action_date: date | None = None
    status_id: int | None = Field(default=None, ge=1)

    @field_validator("description")
    @classmethod
    def reject_blank_description(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Action description cannot be blank")
        return v.strip() if v is not None else None


class ActionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    incident_id: int
    description: str
    action_date: date
    status_id: int | None = None
    status_name: str | None = None
    created_by: int | None = None
    admin_fullname: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
