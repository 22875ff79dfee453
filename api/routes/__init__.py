"""
API Routes Package

This package contains route handlers organized by feature:
- registration.py: REST endpoint for user registration
- authentication.py: REST endpoint for authentication
- management.py: REST endpoints for user management
"""

from api.routes.registration import router as registration_router
from api.routes.authentication import router as authentication_router
from api.routes.management import router as management_router

__all__ = [
    "registration_router",
    "authentication_router",
    "management_router",
]
