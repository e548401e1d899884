# accounts/repositories/profile_store.py

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..core.exceptions import InvalidArgumentError, ProfileNotFoundError, StorageError
from ..models.profile import Profile

logger = logging.getLogger(__name__)


class ProfileStore:
    """
    profiles テーブルへのアクセスをまとめたもの。

    - update / delete は 1 行を対象にした単一の SQL 文になる
      （同時に来た更新と削除は「更新後に削除」か「削除のみ」のどちらかになる）
    - search はユーザー名に対する部分一致（大文字小文字を区別しない）
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, profile: Profile) -> Profile:
        try:
            self.db.add(profile)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "Failed to create profile for %s: %s",
                profile.external_identity_id,
                exc,
            )
            raise StorageError("Could not save profile") from exc
        self.db.refresh(profile)
        return profile

    def get_by_id(self, profile_id: int) -> Profile:
        profile = self._run(lambda: self.db.get(Profile, profile_id))
        if profile is None:
            raise ProfileNotFoundError()
        return profile

    def find_by_external_identity_id(self, external_id: str) -> Optional[Profile]:
        stmt = select(Profile).where(Profile.external_identity_id == external_id)
        return self._run(lambda: self.db.scalars(stmt).first())

    def get_by_external_identity_id(self, external_id: str) -> Profile:
        profile = self.find_by_external_identity_id(external_id)
        if profile is None:
            raise ProfileNotFoundError()
        return profile

    def list_all(self) -> list[Profile]:
        stmt = select(Profile).order_by(Profile.id)
        return self._run(lambda: list(self.db.scalars(stmt)))

    def search(self, term: Optional[str]) -> list[Profile]:
        if term is None or not term.strip():
            raise InvalidArgumentError("Search term is required")

        stmt = (
            select(Profile)
            .where(Profile.username.icontains(term, autoescape=True))
            .order_by(Profile.id)
        )
        return self._run(lambda: list(self.db.scalars(stmt)))

    def update(self, profile: Profile) -> None:
        """
        変更可能な項目（表示名・自己紹介・画像 URL）を書き戻す。
        行が既に消えていた場合は UPDATE が 0 件になり StaleDataError になる。
        """
        profile.updated_at = datetime.now(timezone.utc)
        try:
            self.db.add(profile)
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ProfileNotFoundError() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to update profile id=%s: %s", profile.id, exc)
            raise StorageError("Could not update profile") from exc

    def delete(self, profile_id: int) -> None:
        """
        存在しない id の場合は ProfileNotFoundError。
        呼び出し側は「もう消えている」と解釈してよい。
        """
        stmt = delete(Profile).where(Profile.id == profile_id)
        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                raise ProfileNotFoundError()
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to delete profile id=%s: %s", profile_id, exc)
            raise StorageError("Could not delete profile") from exc

    def _run(self, query):
        try:
            return query()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Profile query failed: %s", exc)
            raise StorageError() from exc
