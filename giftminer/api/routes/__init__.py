from fastapi import APIRouter

from giftminer.api.routes import auth, balance, gifts, health

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(gifts.router, prefix="/gifts", tags=["gifts"])
api_router.include_router(balance.router, tags=["balance"])
