# accounts/schemas/account.py

from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from .profile import ProfileOut


class AccountOut(BaseModel):
    """GET /api/accounts/me 用"""
    externalId: str
    email: Optional[str] = None
    username: Optional[str] = None
    hasProfile: bool
    profile: Optional[ProfileOut] = None


class AccountDeletedOut(BaseModel):
    """DELETE /api/accounts/me 用"""
    message: str
    externalId: str
    deletedAt: datetime
