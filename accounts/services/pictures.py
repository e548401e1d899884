# accounts/services/pictures.py

import logging
import os
import uuid

logger = logging.getLogger(__name__)

# Content-Type -> 拡張子
PICTURE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class PictureStorage:
    """
    プロフィール画像をローカルディレクトリ（MEDIA_ROOT）に保存する。
    保存したファイルは main.py の StaticFiles マウント（MEDIA_URL）から配信される。
    """

    def __init__(self, root: str, base_url: str):
        self.root = root
        self.base_url = base_url.rstrip("/")

    def save(self, profile_id: int, data: bytes, content_type: str) -> str:
        """バイト列を保存して、取得用の URL を返す"""
        ext = PICTURE_EXTENSIONS.get(content_type, "")
        name = f"{profile_id}-{uuid.uuid4().hex}{ext}"

        os.makedirs(self.root, exist_ok=True)
        with open(os.path.join(self.root, name), "wb") as f:
            f.write(data)

        logger.info("Stored profile picture %s (%d bytes)", name, len(data))
        return f"{self.base_url}/{name}"

    def delete(self, url: str) -> None:
        """
        save() が返した URL のファイルを削除する。
        このストレージ配下以外の URL は ValueError。
        """
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            raise ValueError(f"Not a stored picture URL: {url}")

        name = url[len(prefix):]
        if not name or "/" in name or name in (".", ".."):
            raise ValueError(f"Not a stored picture URL: {url}")

        path = os.path.join(self.root, name)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning("Profile picture %s was already gone", name)
            return
        logger.info("Deleted profile picture %s", name)
