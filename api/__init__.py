"""
API Layer for Face Vector Authentication

This package provides the FastAPI-based API layer that exposes:
- REST endpoint for registration
- REST endpoint for authentication
- REST endpoints for user management and health checks

The API layer is a thin transport over the core services; it only maps
requests to service calls and core errors to HTTP responses.
"""
