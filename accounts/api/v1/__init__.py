# accounts/api/v1/__init__.py

from fastapi import APIRouter

from . import accounts, profiles

api_router = APIRouter()

# それぞれの router 側で prefix を持っている前提にする
api_router.include_router(profiles.router)  # prefix="/profiles"
api_router.include_router(accounts.router)  # prefix="/accounts"
