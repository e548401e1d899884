# tests/conftest.py
import os
import tempfile

# アプリの import より前にテスト用の設定を入れておく
_TMP_DIR = tempfile.mkdtemp(prefix="account-service-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP_DIR, 'accounts.db')}")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("KEYCLOAK_ADMIN_URL", "http://keycloak.test")
os.environ.setdefault("KEYCLOAK_REALM", "instaclone")
os.environ.setdefault("KEYCLOAK_ADMIN_USERNAME", "admin")
os.environ.setdefault("KEYCLOAK_ADMIN_PASSWORD", "admin-password")
os.environ.setdefault("MEDIA_ROOT", os.path.join(_TMP_DIR, "media"))
os.environ.setdefault("LOG_DIR", os.path.join(_TMP_DIR, "logs"))

import pytest
from sqlalchemy.orm import Session
from fastapi.testclient import TestClient

from accounts.db import Base, engine, SessionLocal
from accounts.main import app
from accounts.api.deps import (
    get_event_publisher,
    get_keycloak_client,
    get_picture_storage,
)
from accounts.core.config import settings
from accounts.repositories.profile_store import ProfileStore
from accounts.services.events import PublishResult
from accounts.services.pictures import PictureStorage


class StubIdentityProvider:
    """Keycloak の代わり。delete_user の呼び出しを記録する"""

    def __init__(self, result: bool = True):
        self.result = result
        self.deleted: list[str] = []

    def delete_user(self, external_id: str) -> bool:
        self.deleted.append(external_id)
        return self.result


class RecordingPublisher:
    """Redis の代わり。publish されたイベントを溜めておく"""

    def __init__(self, published: bool = True):
        self.published = published
        self.events = []

    def publish(self, event) -> PublishResult:
        self.events.append(event)
        if self.published:
            return PublishResult(published=True, message_id=f"{len(self.events)}-0")
        return PublishResult(published=False, error="broker unavailable")


class RecordingPictureStorage(PictureStorage):
    """実際にファイルを書きつつ、delete の呼び出しを記録する"""

    def __init__(self, root: str, base_url: str):
        super().__init__(root, base_url)
        self.deleted: list[str] = []

    def delete(self, url: str) -> None:
        self.deleted.append(url)
        super().delete(url)


@pytest.fixture(scope="function")
def db() -> Session:
    """
    テストごとにクリーンな DB を用意するフィクスチャ。
    アプリ本体と同じ engine を使う。
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db: Session) -> ProfileStore:
    return ProfileStore(db)


@pytest.fixture
def identity_provider() -> StubIdentityProvider:
    return StubIdentityProvider()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def pictures(tmp_path) -> RecordingPictureStorage:
    return RecordingPictureStorage(str(tmp_path / "media"), settings.MEDIA_URL)


@pytest.fixture(scope="function")
def client(db, identity_provider, publisher, pictures) -> TestClient:
    """
    外部サービス（Keycloak / Redis / 画像保存先）だけ差し替えた TestClient。
    DB はアプリ本体と同じものを使う。
    """
    app.dependency_overrides[get_keycloak_client] = lambda: identity_provider
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    app.dependency_overrides[get_picture_storage] = lambda: pictures
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()

