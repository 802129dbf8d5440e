"""Pydantic models for users, their role/tier and usage counters."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    TRIAL = "TRIAL"


class SubscriptionTier(str, Enum):
    ESSENTIALS = "Essentials"
    PRO = "Pro"
    ENTERPRISE = "Enterprise"


class PermissionSet(BaseModel):
    """Limits granted to a role/tier combination."""

    max_requests: int = Field(..., alias="maxRequests", ge=0)
    max_docs: int = Field(..., alias="maxDocs", ge=0)
    max_area: float = Field(..., alias="maxArea", ge=0, description="Maximum ROI area in km²")

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class UsageRecord(BaseModel):
    requests_count: int = 0
    knowledge_base_docs_count: int = 0


class UserRoleRecord(BaseModel):
    id: str
    name: str
    email: str
    organization: str
    role: Role
    subscription_tier: SubscriptionTier
    license_start: str
    license_end: str
    created_at: str

    model_config = ConfigDict(use_enum_values=True)


class UserProfile(BaseModel):
    email: str
    name: str
    role: Role
    organization: str
    license_start: str = Field(..., alias="licenseStart")
    license_end: str = Field(..., alias="licenseEnd")

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class UserUsageResponse(BaseModel):
    requests_count: int
    knowledge_base_docs_count: int
    max_requests: int = Field(..., alias="maxRequests")
    max_docs: int = Field(..., alias="maxDocs")
    max_area: float = Field(..., alias="maxArea")

    model_config = ConfigDict(populate_by_name=True)
