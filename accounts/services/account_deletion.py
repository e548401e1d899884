# accounts/services/account_deletion.py
"""
GDPR のアカウント削除（DELETE /api/accounts/me）。

手順は固定で、前の手順が失敗しても次へ進む:

1. 呼び出し元の identity が無ければ UnauthorizedError（唯一の中断）
2. Keycloak からユーザーを削除
3. ローカルのプロフィールを削除（無ければ何もしない）
4. 削除イベントを発行
5. 成功を返す

下流の失敗はログに残すだけでロールバックもリトライもしない。
イベントの購読側は Keycloak 側の削除が成功したことを前提にしてはいけない。
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from ..core.exceptions import ProfileNotFoundError, StorageError, UnauthorizedError
from ..repositories.profile_store import ProfileStore
from ..schemas.events import DeletionEvent, DeletionReason
from .events import EventPublisher
from .keycloak import KeycloakClient
from .pictures import PictureStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    """ゲートウェイが X-User-* ヘッダで渡してくる呼び出し元"""
    external_id: str
    email: Optional[str] = None
    username: Optional[str] = None


@dataclass(frozen=True)
class AccountDeletionResult:
    external_id: str
    deleted_at: datetime
    identity_deleted: bool
    profile_removed: bool
    event_published: bool


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountDeletionWorkflow:
    def __init__(
        self,
        identity_provider: KeycloakClient,
        store: ProfileStore,
        publisher: EventPublisher,
        pictures: Optional[PictureStorage] = None,
        default_picture_url: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.identity_provider = identity_provider
        self.store = store
        self.publisher = publisher
        self.pictures = pictures
        self.default_picture_url = default_picture_url
        self.clock = clock

    def run(self, caller: Optional[CallerIdentity]) -> AccountDeletionResult:
        if caller is None or not caller.external_id or not caller.external_id.strip():
            raise UnauthorizedError()

        external_id = caller.external_id
        logger.info("Account deletion requested for %s", external_id)

        identity_deleted = self.identity_provider.delete_user(external_id)
        if not identity_deleted:
            logger.error(
                "Keycloak deletion failed for %s; continuing with local cleanup",
                external_id,
            )

        profile_removed, profile_username = self._remove_profile(external_id)

        event = DeletionEvent(
            external_id=external_id,
            username=caller.username or profile_username,
            email=caller.email,
            deleted_at=self.clock(),
            reason=DeletionReason.GDPR_USER_REQUEST,
        )
        result = self.publisher.publish(event)
        if not result.published:
            logger.error(
                "Account deletion event for %s was not published: %s",
                external_id,
                result.error,
            )

        logger.info(
            "Account deletion finished for %s (keycloak=%s, profile=%s, event=%s)",
            external_id,
            identity_deleted,
            profile_removed,
            result.published,
        )
        return AccountDeletionResult(
            external_id=external_id,
            deleted_at=event.deleted_at,
            identity_deleted=identity_deleted,
            profile_removed=profile_removed,
            event_published=result.published,
        )

    def _remove_profile(self, external_id: str) -> tuple[bool, Optional[str]]:
        """(削除したか, 削除したプロフィールのユーザー名) を返す"""
        try:
            profile = self.store.find_by_external_identity_id(external_id)
        except StorageError:
            logger.error("Could not look up profile for %s", external_id)
            return False, None

        if profile is None:
            logger.info("No local profile for %s", external_id)
            return False, None

        profile_id = profile.id
        username = profile.username
        picture_url = profile.picture_url

        try:
            self.store.delete(profile_id)
        except ProfileNotFoundError:
            logger.info("Profile %s was already deleted", profile_id)
            return False, username
        except StorageError:
            logger.error("Could not delete profile %s for %s", profile_id, external_id)
            return False, username

        self._delete_picture(picture_url)
        logger.info("Deleted profile %s for %s", profile_id, external_id)
        return True, username

    def _delete_picture(self, url: str) -> None:
        if self.pictures is None or url == self.default_picture_url:
            return
        try:
            self.pictures.delete(url)
        except Exception as exc:
            logger.warning("Failed to delete profile picture %s: %s", url, exc)
