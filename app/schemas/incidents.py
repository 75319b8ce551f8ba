"""Request/response schemas for incidents."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class IncidentCreate(BaseModel):
    """New incident report. The title is title_text, else the predefined title title_id."""

    title_id: int | None = Field(default=None, ge=1)
    title_text: str | None = Field(default=None, max_length=512)
    description: str = Field(..., max_length=20_000)
    location_id: int = Field(..., ge=1)
    priority_id: int = Field(..., ge=1, description="Risk level")
    category_id: int = Field(..., ge=1, description="1 = cyber, 2 = physical")
    status_id: int | None = Field(default=None, ge=1)
    submission_date: datetime | None = Field(
        default=None, description="When the incident was observed; defaults to now"
    )

    @model_validator(mode="after")
    def require_title_and_description(self) -> "IncidentCreate":
        if not self.custom_title and self.title_id is None:
            raise ValueError("Incident title is required (title_text or title_id)")
        if not self.description.strip():
            raise ValueError("Incident description is required")
        return self

    @property
    def custom_title(self) -> str:
        return self.title_text.strip() if self.title_text else ""


class IncidentFilters(BaseModel):
    status_id: int | None = None
    priority_id: int | None = None
    location_id: int | None = None
    category_id: int | None = None
    reporter_id: int | None = None
    search: str | None = Field(default=None, max_length=256)
    scope: Literal["all", "physical"] = "all"


class IncidentOut(BaseModel):
    id: int
    title: str
    description: str
    category_id: int
    category_label: str
    location_id: int
    location_name: str | None = None
    priority_id: int
    priority_name: str | None = None
    status_id: int | None = None
    status_name: str | None = None
    reporter_id: int
    reporter_username: str | None = None
    reporter_fullname: str | None = None
    submission_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    first_action_at: datetime | None = None
    resolved_at: datetime | None = None
    actions_count: int = 0
    last_action_description: str | None = None
    last_action_at: datetime | None = None
    last_action_status_id: int | None = None
