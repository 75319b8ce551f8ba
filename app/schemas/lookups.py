"""Request/response schemas for lookup tables (locations, priorities, statuses, titles)."""

from pydantic import BaseModel, Field, field_validator


class LookupItemOut(BaseModel):
    """One lookup row. For titles, name is the title text and category_id is set."""

    id: int
    name: str
    category_id: int | None = None


class TitleOut(BaseModel):
    title_id: int
    title: str
    category_id: int


class TitlesByCategory(BaseModel):
    cyber: list[TitleOut] = []
    physical: list[TitleOut] = []


class LookupOverview(BaseModel):
    """Everything a reporting form needs in one call."""

    titles: TitlesByCategory
    locations: list[LookupItemOut]
    priorities: list[LookupItemOut]
    statuses: list[LookupItemOut]


class LookupItemRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=512)

    @field_validator("name")
    @classmethod
    def require_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class LookupItemCreate(LookupItemRename):
    category_id: int | None = Field(default=None, description="Titles only: 1 = cyber, 2 = physical")
