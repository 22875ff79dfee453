"""
Registration API Routes

This module provides:
- POST /register: Enroll a new user from a username, a reference image and
  the feature vector extracted from that image by the capture frontend.

The response only confirms the username; the feature vector is never echoed
back to the caller.
"""

from fastapi import APIRouter, status

from api.schemas import RegisterRequest, RegisterResponse, ErrorResponse
from core.enrollment_store import get_enrollment_store
from core.registration import RegistrationService

# Create router
router = APIRouter(tags=["registration"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def register(request: RegisterRequest):
    """
    Register a new user.

    Errors:
        400: MISSING_FIELD or INVALID_INPUT.
        409: DUPLICATE_USERNAME.
        503: STORE_UNAVAILABLE.
    """
    service = RegistrationService(get_enrollment_store())
    enrollment = service.register(request.username, request.image_data, request.features)

    return RegisterResponse(
        message="User registered successfully",
        username=enrollment.username,
    )
