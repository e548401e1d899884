# accounts/services/keycloak.py

import logging
from enum import Enum
from typing import Optional
from urllib.parse import quote

import httpx

from ..core.config import Settings

logger = logging.getLogger(__name__)


class IdentityProviderOutcome(str, Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    AUTH_FAILURE = "auth_failure"
    REMOTE_FAILURE = "remote_failure"
    TRANSPORT_FAILURE = "transport_failure"
    INVALID_ID = "invalid_id"

    @property
    def succeeded(self) -> bool:
        # 既に存在しないユーザーは「削除済み」とみなす
        return self in (IdentityProviderOutcome.DELETED, IdentityProviderOutcome.NOT_FOUND)


class KeycloakClient:
    """
    Keycloak の管理 API を使ってユーザーを削除するクライアント。

    削除のたびに admin ユーザーでパスワードグラントを行いトークンを取り直す
    （トークンはキャッシュしない）。失敗は例外ではなく戻り値で返し、
    詳細はログに残す。
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.base_url = settings.KEYCLOAK_ADMIN_URL.rstrip("/")
        self.realm = settings.KEYCLOAK_REALM
        self.token_realm = settings.KEYCLOAK_TOKEN_REALM
        self.client_id = settings.KEYCLOAK_ADMIN_CLIENT_ID
        self._username = settings.KEYCLOAK_ADMIN_USERNAME
        self._password = settings.KEYCLOAK_ADMIN_PASSWORD
        self._http = http_client or httpx.Client(timeout=settings.KEYCLOAK_TIMEOUT_SECONDS)

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/realms/{self.token_realm}/protocol/openid-connect/token"

    def user_url(self, external_id: str) -> str:
        # "/" を含めてエスケープし、パスが対象 realm の users 配下から出ないようにする
        return f"{self.base_url}/admin/realms/{self.realm}/users/{quote(external_id, safe='')}"

    def delete_user(self, external_id: str) -> bool:
        """削除できた、または既に存在しなければ True"""
        return self.delete_user_outcome(external_id).succeeded

    def delete_user_outcome(self, external_id: str) -> IdentityProviderOutcome:
        # "." や ".." はエスケープしてもドットセグメントとして解釈される
        if not external_id or not external_id.strip(".").strip():
            logger.error("Refusing to delete Keycloak user with invalid id %r", external_id)
            return IdentityProviderOutcome.INVALID_ID

        try:
            token = self._get_admin_token()
            if not token:
                logger.error("Failed to get Keycloak admin token")
                return IdentityProviderOutcome.AUTH_FAILURE

            url = self.user_url(external_id)
            logger.debug("Deleting user from Keycloak: %s", url)
            response = self._http.delete(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as exc:
            logger.error(
                "Transport error while deleting user %s from Keycloak: %s",
                external_id,
                exc,
                exc_info=True,
            )
            return IdentityProviderOutcome.TRANSPORT_FAILURE

        if response.is_success:
            logger.info("Successfully deleted user %s from Keycloak", external_id)
            return IdentityProviderOutcome.DELETED

        if response.status_code == 404:
            logger.warning(
                "User %s not found in Keycloak (may have been already deleted)",
                external_id,
            )
            return IdentityProviderOutcome.NOT_FOUND

        logger.error(
            "Failed to delete user %s from Keycloak: %s - %s",
            external_id,
            response.status_code,
            response.text,
        )
        return IdentityProviderOutcome.REMOTE_FAILURE

    def _get_admin_token(self) -> Optional[str]:
        data = {
            "client_id": self.client_id,
            "username": self._username,
            "password": self._password,
            "grant_type": "password",
        }
        logger.debug("Getting Keycloak admin token from: %s", self.token_url)
        response = self._http.post(self.token_url, data=data)

        if not response.is_success:
            logger.error(
                "Failed to get Keycloak admin token: %s - %s",
                response.status_code,
                response.text,
            )
            return None

        try:
            body = response.json()
        except ValueError:
            logger.error("Keycloak token response was not JSON")
            return None

        token = body.get("access_token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            logger.error("Keycloak token response did not contain an access_token")
            return None
        return token

    def close(self) -> None:
        self._http.close()
