from fastapi import APIRouter

from .admin import admin_router
from .financing import financing_router
from .health import health_router
from .webhooks import webhook_router

router = APIRouter()

router.include_router(health_router, tags=["Health"])
router.include_router(financing_router, tags=["Financing"])
router.include_router(admin_router, tags=["Admin"])
router.include_router(webhook_router, tags=["Webhooks"])
