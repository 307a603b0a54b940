from fastapi import APIRouter

from roster.api.auth import router as auth_router
from roster.api.health import router as health_router
from roster.api.students import router as students_router

api_router = APIRouter()

# Include sub-routers
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router)
api_router.include_router(students_router)
