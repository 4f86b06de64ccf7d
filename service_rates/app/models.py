"""
Request and response models for the Rates Service.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """A stored user profile."""
    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Contact email")
    bio: str = Field("", description="Free-form biography")


class BioUpdateRequest(BaseModel):
    """Request model for a bio update."""
    bio: str = Field(..., description="New biography; surrounding whitespace is trimmed")


class UserUpdateResponse(BaseModel):
    """Response model for a bio update."""
    message: str = "User profile updated"
    user: UserProfile


class ExchangeRatesResponse(BaseModel):
    """Exchange rates with the origin of the data."""
    source: Literal["API", "cache"]
    data: Dict[str, Any]
