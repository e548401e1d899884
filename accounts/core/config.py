# accounts/core/config.py

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------
# 設定値（環境変数 or .env から読み込む）
# 必須項目が欠けている場合は起動時に ValidationError で落とす
# ---------------------------------------------
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # DB / メッセージバス
    DATABASE_URL: str
    REDIS_URL: str
    ACCOUNT_EVENTS_STREAM: str = "account-deleted"

    # Keycloak
    KEYCLOAK_ADMIN_URL: str = "http://keycloak:8080"
    KEYCLOAK_REALM: str = "instaclone"
    KEYCLOAK_TOKEN_REALM: str = "master"
    KEYCLOAK_ADMIN_CLIENT_ID: str = "admin-cli"
    KEYCLOAK_ADMIN_USERNAME: str
    KEYCLOAK_ADMIN_PASSWORD: str
    KEYCLOAK_TIMEOUT_SECONDS: float = 10.0

    # プロフィール画像
    MEDIA_ROOT: str = "media"
    MEDIA_URL: str = "/media"
    DEFAULT_PICTURE_URL: str = "default_pr_pic"
    MAX_PICTURE_BYTES: int = 5 * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
