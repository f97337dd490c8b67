"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- examples.py: /api/v1/examples/* endpoints
- auth.py: /api/v1/auth/* endpoints (token refresh)
- health.py: /health, /ready, /live and /metrics (unversioned)

Each router is imported and registered in main.py.
"""

from skeleton_api.routers.auth import router as auth_router
from skeleton_api.routers.examples import router as examples_router
from skeleton_api.routers.health import router as health_router

__all__ = [
    "auth_router",
    "examples_router",
    "health_router",
]
