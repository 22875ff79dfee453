"""
Authentication API Routes

This module provides the POST /authenticate endpoint for face authentication.
It compares the query feature vector against every enrolled vector and
returns the best match above the configured threshold.

A rejection is reported as 401 with no detail about which enrollments were
closest or what score they reached.
"""

from fastapi import APIRouter, HTTPException, status

from api.schemas import AuthRequest, AuthResponse, ErrorResponse
from core.config import get_matching_config
from core.enrollment_store import get_enrollment_store
from core.matching import AuthenticationMatcher

# Create router
router = APIRouter(tags=["authentication"])


def get_matcher() -> AuthenticationMatcher:
    """Build a matcher over the shared store using the matching config."""
    return AuthenticationMatcher(get_enrollment_store(), get_matching_config())


@router.post(
    "/authenticate",
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"description": "Face not recognized"},
        503: {"model": ErrorResponse},
    },
)
async def authenticate(request: AuthRequest):
    """
    Authenticate a user by feature vector (1:N identification).

    Returns:
        AuthResponse with the matched username and similarity.

    Raises:
        401: If no enrollment scores above the threshold.
    """
    result = get_matcher().authenticate(request.features)

    if not result.is_match:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Face not recognized",
        )

    return AuthResponse(
        message="Login successful",
        username=result.username,
        similarity=result.score,
    )
