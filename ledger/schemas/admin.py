"""Pydantic schemas for admin endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Request schema for provisioning a user."""

    user_id: str = Field(..., min_length=1, max_length=255, description="Unique user ID")


class UserResponse(BaseModel):
    """Response schema for a newly provisioned user (includes the bearer key)."""

    user_id: str
    api_key: str
    created_at: datetime


class UserListItem(BaseModel):
    """Response schema for a user in list view."""

    user_id: str
    created_at: datetime
