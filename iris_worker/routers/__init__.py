"""FastAPI routers for the worker.

Routers are grouped by resource (messages, projects).
"""

from fastapi import APIRouter

from .messages import router as messages_router
from .projects import router as projects_router

# Shared top-level router, mounted under /api by the app factory
api_router = APIRouter()
api_router.include_router(messages_router)
api_router.include_router(projects_router)
