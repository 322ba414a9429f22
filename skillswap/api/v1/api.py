from fastapi import APIRouter

from skillswap.api.v1 import admin, auth, messages, swaps, users

router = APIRouter(prefix="/api/v1")

router.include_router(auth.router)
router.include_router(users.router)
router.include_router(swaps.router)
router.include_router(admin.router)
router.include_router(messages.router)
