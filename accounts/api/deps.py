# accounts/api/deps.py

from collections.abc import Generator
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import UnauthorizedError
from ..db import SessionLocal
from ..repositories.profile_store import ProfileStore
from ..services.account_deletion import AccountDeletionWorkflow, CallerIdentity
from ..services.events import EventPublisher, create_redis_client
from ..services.keycloak import KeycloakClient
from ..services.pictures import PictureStorage
from ..services.profile_manager import ProfileManager


def get_db_dep() -> Generator[Session, None, None]:
    """
    FastAPI の Depends で使う DB セッション依存関数。
    エンドポイント側では `db: Session = Depends(get_db_dep)` で利用。
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# -----------------------------
# 呼び出し元 identity（ゲートウェイが付与するヘッダ）
# -----------------------------

def get_caller(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
) -> Optional[CallerIdentity]:
    if x_user_id is None or not x_user_id.strip():
        return None
    return CallerIdentity(
        external_id=x_user_id.strip(),
        email=x_user_email or None,
        username=x_user_name or None,
    )


def require_caller(
    caller: Optional[CallerIdentity] = Depends(get_caller),
) -> CallerIdentity:
    if caller is None:
        raise UnauthorizedError()
    return caller


# -----------------------------
# プロセス内で使い回すクライアント
# -----------------------------

@lru_cache()
def get_keycloak_client() -> KeycloakClient:
    return KeycloakClient(settings)


@lru_cache()
def get_event_publisher() -> EventPublisher:
    return EventPublisher(
        create_redis_client(settings.REDIS_URL),
        settings.ACCOUNT_EVENTS_STREAM,
    )


@lru_cache()
def get_picture_storage() -> PictureStorage:
    return PictureStorage(settings.MEDIA_ROOT, settings.MEDIA_URL)


# -----------------------------
# リクエスト単位のサービス
# -----------------------------

def get_profile_store(db: Session = Depends(get_db_dep)) -> ProfileStore:
    return ProfileStore(db)


def get_profile_manager(
    store: ProfileStore = Depends(get_profile_store),
    pictures: PictureStorage = Depends(get_picture_storage),
) -> ProfileManager:
    return ProfileManager(
        store,
        pictures,
        default_picture_url=settings.DEFAULT_PICTURE_URL,
        max_picture_bytes=settings.MAX_PICTURE_BYTES,
    )


def get_account_deletion_workflow(
    store: ProfileStore = Depends(get_profile_store),
    identity_provider: KeycloakClient = Depends(get_keycloak_client),
    publisher: EventPublisher = Depends(get_event_publisher),
    pictures: PictureStorage = Depends(get_picture_storage),
) -> AccountDeletionWorkflow:
    return AccountDeletionWorkflow(
        identity_provider,
        store,
        publisher,
        pictures=pictures,
        default_picture_url=settings.DEFAULT_PICTURE_URL,
    )
