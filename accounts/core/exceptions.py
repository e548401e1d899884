# accounts/core/exceptions.py
"""
サービス層で使う例外。

ルーター側で HTTPException に詰め替えなくて済むように、各例外が
status_code と利用者向けの短いメッセージを持つ。変換は main.py の
exception handler で一括して行う。
"""


class AccountServiceError(Exception):
    """アカウントサービスの例外の基底クラス"""

    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class UnauthorizedError(AccountServiceError):
    """呼び出し元の identity がリクエストに無い"""

    status_code = 401
    default_detail = "Authentication required"


class ForbiddenError(AccountServiceError):
    """呼び出し元が対象プロフィールの所有者ではない"""

    status_code = 403
    default_detail = "You do not own this profile"


class ProfileNotFoundError(AccountServiceError):
    status_code = 404
    default_detail = "Profile not found"


class ProfileConflictError(AccountServiceError):
    """1 identity につきプロフィールは 1 件まで"""

    status_code = 409
    default_detail = "A profile already exists for this account"


class InvalidArgumentError(AccountServiceError):
    status_code = 400
    default_detail = "Invalid request"


class StorageError(AccountServiceError):
    """DB への書き込み・読み込みに失敗した（制約違反・接続断など）"""

    status_code = 500
    default_detail = "Storage failure"
