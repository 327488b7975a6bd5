"""Version 1 API routers."""

from fastapi import APIRouter

from .auth import router as auth_router
from .customers import router as customers_router

router = APIRouter(prefix="/v1")
router.include_router(auth_router)
router.include_router(customers_router)

__all__ = ["router"]
