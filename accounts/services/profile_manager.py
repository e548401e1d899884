# accounts/services/profile_manager.py

import logging
from typing import Optional

from ..core.exceptions import ForbiddenError, InvalidArgumentError, ProfileConflictError
from ..models.profile import Profile
from ..repositories.profile_store import ProfileStore
from .pictures import PICTURE_EXTENSIONS, PictureStorage

logger = logging.getLogger(__name__)

_UNSET = object()


class ProfileManager:
    """
    プロフィールの作成・更新・削除・検索。

    更新系はすべて「プロフィールを取得（無ければ 404）→ 所有者チェック（403）」
    の順で行う。呼び出し元の identity はゲートウェイで認証済みのものを使う。
    """

    def __init__(
        self,
        store: ProfileStore,
        pictures: PictureStorage,
        default_picture_url: str,
        max_picture_bytes: Optional[int] = None,
    ):
        self.store = store
        self.pictures = pictures
        self.default_picture_url = default_picture_url
        self.max_picture_bytes = max_picture_bytes

    # -----------------------------
    # 参照
    # -----------------------------

    def get(self, profile_id: int) -> Profile:
        return self.store.get_by_id(profile_id)

    def get_mine(self, owner_external_id: str) -> Profile:
        return self.store.get_by_external_identity_id(owner_external_id)

    def list_profiles(self) -> list[Profile]:
        return self.store.list_all()

    def search(self, term: Optional[str]) -> list[Profile]:
        return self.store.search(term)

    # -----------------------------
    # 作成
    # -----------------------------

    def create(
        self,
        owner_external_id: str,
        username: str,
        display_name: str,
        description: Optional[str] = None,
    ) -> Profile:
        if not username or not username.strip():
            raise InvalidArgumentError("username is required")
        if not display_name or not display_name.strip():
            raise InvalidArgumentError("display_name is required")

        # 1 identity につき 1 件（テーブル側の unique 制約は保険）
        if self.store.find_by_external_identity_id(owner_external_id) is not None:
            raise ProfileConflictError()

        profile = Profile(
            external_identity_id=owner_external_id,
            username=username,
            display_name=display_name,
            description=description,
            picture_url=self.default_picture_url,
        )
        profile = self.store.create(profile)
        logger.info("Created profile %s for %s", profile.id, owner_external_id)
        return profile

    # -----------------------------
    # 更新
    # -----------------------------

    def update_name(self, profile_id: int, caller_external_id: str, new_name: str) -> Profile:
        return self.update_details(profile_id, caller_external_id, display_name=new_name)

    def update_description(
        self,
        profile_id: int,
        caller_external_id: str,
        new_description: Optional[str],
    ) -> Profile:
        return self.update_details(profile_id, caller_external_id, description=new_description)

    def update_details(
        self,
        profile_id: int,
        caller_external_id: str,
        display_name=_UNSET,
        description=_UNSET,
    ) -> Profile:
        """指定された項目だけを書き換え、1 回の commit で保存する"""
        if display_name is not _UNSET and (not display_name or not display_name.strip()):
            raise InvalidArgumentError("display_name must not be empty")

        profile = self._get_owned(profile_id, caller_external_id)
        if display_name is not _UNSET:
            profile.display_name = display_name
        if description is not _UNSET:
            profile.description = description
        self.store.update(profile)
        return profile

    def upload_picture(
        self,
        profile_id: int,
        caller_external_id: str,
        file_bytes: bytes,
        content_type: Optional[str],
    ) -> str:
        profile = self._get_owned(profile_id, caller_external_id)

        if not file_bytes:
            raise InvalidArgumentError("No file uploaded")
        if content_type not in PICTURE_EXTENSIONS:
            raise InvalidArgumentError("Unsupported picture type")
        if self.max_picture_bytes is not None and len(file_bytes) > self.max_picture_bytes:
            raise InvalidArgumentError("Picture is too large")

        previous_url = profile.picture_url
        url = self.pictures.save(profile.id, file_bytes, content_type)

        profile.picture_url = url
        try:
            self.store.update(profile)
        except Exception:
            # DB に反映できなかった画像は残さない
            self._delete_picture_quietly(url)
            raise

        if previous_url != self.default_picture_url:
            self._delete_picture_quietly(previous_url)
        return url

    # -----------------------------
    # 削除
    # -----------------------------

    def delete(self, profile_id: int, caller_external_id: str) -> None:
        profile = self._get_owned(profile_id, caller_external_id)
        picture_url = profile.picture_url

        if picture_url != self.default_picture_url:
            self._delete_picture_quietly(picture_url)

        self.store.delete(profile_id)
        logger.info("Deleted profile %s", profile_id)

    # -----------------------------
    # 内部ヘルパー
    # -----------------------------

    def _get_owned(self, profile_id: int, caller_external_id: str) -> Profile:
        profile = self.store.get_by_id(profile_id)
        if profile.external_identity_id != caller_external_id:
            raise ForbiddenError()
        return profile

    def _delete_picture_quietly(self, url: str) -> None:
        """古い画像の削除は失敗してもリクエストを失敗させない"""
        try:
            self.pictures.delete(url)
        except Exception as exc:
            logger.warning("Failed to delete profile picture %s: %s", url, exc)
