# accounts/schemas/events.py
"""
他サービスへ通知するアカウント削除イベント。

購読側はこのイベントを受けて自分のデータを削除する。
外部 ID プロバイダ側の削除が成功したかどうかは保証しない。
"""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class DeletionReason(str, Enum):
    GDPR_USER_REQUEST = "GDPR_USER_REQUEST"
    ADMIN_ACTION = "ADMIN_ACTION"


@dataclass(frozen=True)
class DeletionEvent:
    external_id: str
    username: Optional[str]
    email: Optional[str]
    deleted_at: datetime
    reason: DeletionReason = DeletionReason.GDPR_USER_REQUEST

    def to_message(self) -> dict:
        """メッセージバスに載せる形（キーは購読側と合わせて camelCase）"""
        return {
            "externalId": self.external_id,
            "username": self.username,
            "email": self.email,
            "deletedAt": self.deleted_at.isoformat(),
            "reason": self.reason.value,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_message())
