"""
Pydantic Schemas for API Request/Response Models

This module defines the data models used for communication between the
capture frontend and the authentication backend.

These schemas provide:
- Type validation
- Automatic documentation in OpenAPI/Swagger
- Clear interface contracts

Field presence is validated by the core services rather than here, so that
a missing username, image or feature vector is reported with the same
MISSING_FIELD error whether it is absent, null or empty.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


# ============================================================
# Registration Schemas
# ============================================================

class RegisterRequest(BaseModel):
    """Request to register a new user."""
    username: Optional[str] = Field(None, description="Unique username")
    image_data: Optional[str] = Field(
        None,
        description="Reference face image, typically a base64 data URL"
    )
    features: Optional[List[float]] = Field(
        None,
        description="Feature vector extracted from the image (128 floats)"
    )


class RegisterResponse(BaseModel):
    """Response after a successful registration. The vector is not echoed."""
    message: str = Field(..., description="Status message")
    username: str = Field(..., description="Registered username")


# ============================================================
# Authentication Schemas
# ============================================================

class AuthRequest(BaseModel):
    """Request for 1:N authentication."""
    features: Optional[List[float]] = Field(
        None,
        description="Feature vector captured at login"
    )


class AuthResponse(BaseModel):
    """Response from a successful authentication."""
    message: str = Field(..., description="Status message")
    username: str = Field(..., description="Matched username")
    similarity: float = Field(..., description="Cosine similarity of the match")


# ============================================================
# User Management Schemas
# ============================================================

class UserInfo(BaseModel):
    """User listing entry. Never carries vectors or images."""
    username: str = Field(..., description="Unique username")
    created_at: datetime = Field(..., description="UTC timestamp of registration")


class UserListResponse(BaseModel):
    """Response containing list of enrolled users."""
    users: List[UserInfo] = Field(default_factory=list)
    total: int = Field(0, description="Total number of enrolled users")


class DeleteUserResponse(BaseModel):
    """Response from user deletion."""
    success: bool = Field(..., description="Whether deletion was successful")
    username: str = Field(..., description="Username of deleted user")
    message: str = Field(..., description="Status message")


# ============================================================
# Error and Health Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Error body returned for any failed request."""
    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Stable error code, e.g. DUPLICATE_USERNAME")


class HealthResponse(BaseModel):
    """System health check response."""
    status: str = Field(..., description="Overall status: 'healthy' or 'degraded'")
    enrolled_users: Optional[int] = Field(None, description="Number of enrolled users")
    timestamp: datetime = Field(..., description="Server time (UTC)")
