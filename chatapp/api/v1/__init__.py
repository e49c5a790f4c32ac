"""
API v1 routes.
"""

from fastapi import APIRouter

from chatapp.api.v1 import auth, chats

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(chats.router, prefix="/chats", tags=["Chats"])
