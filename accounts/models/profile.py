# accounts/models/profile.py

from sqlalchemy import Column, Integer, String, Text, DateTime
from datetime import datetime, timezone

from ..core.config import settings
from ..db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    __tablename__ = "profiles"
    # SQLite でも削除済みの id を再利用させない
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_identity_id = Column(String, nullable=False, unique=True, index=True)
    username = Column(String, nullable=False, index=True)
    display_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    picture_url = Column(
        String, nullable=False, default=lambda: settings.DEFAULT_PICTURE_URL
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    @property
    def has_default_picture(self) -> bool:
        return self.picture_url == settings.DEFAULT_PICTURE_URL
