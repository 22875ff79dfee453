"""
User Management API Routes

This module provides REST endpoints for managing enrolled users:
- GET /users: List all enrolled users (username and enrollment time only)
- DELETE /users/{username}: Delete an enrolled user. The username may
  contain "/", so it is matched as a path parameter.
"""

from fastapi import APIRouter

from api.schemas import (
    UserInfo,
    UserListResponse,
    DeleteUserResponse,
    ErrorResponse,
)
from core.administration import AdminService
from core.enrollment_store import get_enrollment_store

# Create router
router = APIRouter(tags=["users"])


@router.get("/users", response_model=UserListResponse, responses={503: {"model": ErrorResponse}})
async def list_users():
    """
    List all enrolled users.

    Feature vectors and reference images are never included.
    """
    users = AdminService(get_enrollment_store()).list_users()

    return UserListResponse(
        users=[UserInfo(username=u.username, created_at=u.created_at) for u in users],
        total=len(users),
    )


@router.delete(
    "/users/{username:path}",
    response_model=DeleteUserResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def delete_user(username: str):
    """
    Delete an enrolled user.

    This permanently removes the enrollment; subsequent authentications
    can no longer match it.

    Raises:
        404: If the user is not found.
    """
    AdminService(get_enrollment_store()).delete_user(username)

    return DeleteUserResponse(
        success=True,
        username=username,
        message=f"User {username} deleted successfully",
    )
