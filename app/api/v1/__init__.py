"""V1 API router aggregation."""

from fastapi import APIRouter

from app.api.v1.signup import router as signup_router
from app.api.v1.system import router as system_router
from app.api.v1.tenants import router as tenants_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(tenants_router)
v1_router.include_router(signup_router)
v1_router.include_router(system_router)
