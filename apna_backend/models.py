"""Pydantic models for rows, requests and responses.

This is the single schema for the service. Rows coming back from Supabase
use snake_case column names and validate by field name; API payloads are
camelCase and use the generated aliases in both directions.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_row(cls, row: dict):
        """Build a model from a database row (snake_case keys)."""
        return cls.model_validate(row)

    def to_row(self) -> dict:
        """Dump to a database row, dropping unset optional columns."""
        return self.model_dump(mode="json", by_alias=False, exclude_none=True)


# =============================================================================
# Status values
# =============================================================================

UserStatus = Literal["pending", "approved", "rejected", "suspended"]
ServiceStatus = Literal["pending", "approved", "rejected"]
JobStatus = Literal["pending", "open", "closed"]
HireRequestStatus = Literal["pending", "approved", "rejected", "completed"]


# =============================================================================
# Entities
# =============================================================================


class UserProfile(CamelModel):
    """A user profile. The password column is never loaded into this model."""

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    bio: str | None = None
    skills: list[str] | None = None
    hourly_rate: Decimal | None = None
    is_freelancer: bool = False
    is_client: bool = False
    is_admin: bool = False
    status: UserStatus | None = None
    rating: Decimal | None = None
    total_reviews: int | None = None
    location: str | None = None
    availability: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("is_freelancer", "is_client", "is_admin", mode="before")
    @classmethod
    def null_flag_is_false(cls, v):
        # The flag columns are nullable; NULL means the flag was never set
        return False if v is None else v


class Service(CamelModel):
    """A service (gig) offered by a freelancer."""

    id: int
    freelancer_id: str
    category_id: int | None = None
    title: str
    description: str | None = None
    price: Decimal | None = None
    delivery_time: int | None = None  # days
    images: list[str] | None = None
    skills: list[str] | None = None
    status: ServiceStatus = "pending"
    is_active: bool = False
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("is_active", mode="before")
    @classmethod
    def null_active_is_false(cls, v):
        return False if v is None else v


class Job(CamelModel):
    """A job posted by a client."""

    id: int
    client_id: str
    category_id: int | None = None
    title: str
    description: str | None = None
    budget: Decimal | None = None
    duration: str | None = None
    experience_level: str | None = None
    skills: list[str] | None = None
    status: JobStatus = "pending"
    approved_by: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class HireRequest(CamelModel):
    """A client's request to hire a specific freelancer."""

    id: int
    client_id: str
    freelancer_id: str
    project_title: str
    project_description: str | None = None
    budget: Decimal | None = None
    deadline: datetime | None = None
    status: HireRequestStatus = "pending"
    client_message: str | None = None
    admin_response: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AdminAction(CamelModel):
    """One audit-log entry. Written once, never updated."""

    id: int | None = None
    admin_id: str
    action: str
    target_type: str
    target_id: str
    details: str | None = None
    created_at: datetime | None = None


# =============================================================================
# Requests
# =============================================================================


class ServiceCreate(CamelModel):
    """Request to submit a service for review."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category_id: int
    price: Decimal = Field(..., gt=0)
    delivery_time: int = Field(..., ge=1)
    images: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v if s.strip()]


class JobCreate(CamelModel):
    """Request to submit a job posting for review."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category_id: int
    budget: Decimal = Field(..., gt=0)
    duration: str = Field(..., min_length=1, max_length=50)
    experience_level: str = Field(..., min_length=1, max_length=20)
    skills: list[str] = Field(default_factory=list)

    @field_validator("skills")
    @classmethod
    def validate_skills(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v if s.strip()]


class HireRequestCreate(CamelModel):
    """Request to hire a freelancer directly."""

    freelancer_id: str = Field(..., min_length=1)
    project_title: str = Field(..., min_length=1, max_length=200)
    project_description: str = Field(..., min_length=1)
    budget: Decimal | None = Field(None, gt=0)
    deadline: datetime | None = None
    client_message: str | None = None


class RejectRequest(CamelModel):
    """Optional free-text reason attached to a rejection."""

    reason: str | None = None


class HireRequestRejectRequest(CamelModel):
    """Optional admin response attached to a hire-request rejection."""

    response: str | None = None


# =============================================================================
# Responses
# =============================================================================


class HireRequestsOverview(CamelModel):
    """The caller's hire requests, split by role."""

    as_client: list[HireRequest]
    as_freelancer: list[HireRequest]
