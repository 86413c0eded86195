"""Project and project viewer schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from buildcost.db.enums import ProjectStatus, ProjectType


class _ProjectFields(BaseModel):
    description: str | None = None
    project_type: ProjectType | None = None
    client_name: str | None = Field(None, max_length=255)
    contact_person: str | None = Field(None, max_length=255)
    client_phone: str | None = Field(None, max_length=50)
    client_email: EmailStr | None = None
    billing_address: str | None = None
    project_address: str | None = None
    project_scope: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    model_config = {"str_strip_whitespace": True}

    @model_validator(mode="after")
    def _check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ProjectCreate(_ProjectFields):
    name: str = Field(..., min_length=1, max_length=255)
    status: ProjectStatus = ProjectStatus.PLANNING
    organization_id: UUID | None = None


class ProjectUpdate(_ProjectFields):
    name: str | None = Field(None, min_length=1, max_length=255)
    status: ProjectStatus | None = None


class ProjectRead(BaseModel):
    id: UUID
    name: str
    description: str | None
    status: ProjectStatus
    project_type: ProjectType | None
    client_name: str | None
    contact_person: str | None
    client_phone: str | None
    client_email: str | None
    billing_address: str | None
    project_address: str | None
    project_scope: str | None
    start_date: date | None
    end_date: date | None
    organization_id: UUID
    created_by_user_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Viewers
# =============================================================================

class ViewerAdd(BaseModel):
    user_id: UUID


class ViewerRead(BaseModel):
    id: UUID
    project_id: UUID
    user_id: UUID
    email: str
    display_name: str
    created_at: datetime
