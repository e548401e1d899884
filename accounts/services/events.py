# accounts/services/events.py

import logging
from dataclasses import dataclass
from typing import Optional

import redis

from ..schemas.events import DeletionEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishResult:
    published: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EventPublisher:
    """
    アカウント削除イベントを Redis Stream に追加する。

    Stream はブローカー側で永続化され、購読側はコンシューマーグループで
    読み取って ACK する（少なくとも 1 回配送、順序は保証しない）。
    XADD の応答を待ってから返すので、失敗は呼び出し側から見える。
    """

    def __init__(self, client: redis.Redis, stream: str):
        self.client = client
        self.stream = stream

    def publish(self, event: DeletionEvent) -> PublishResult:
        try:
            message_id = self.client.xadd(
                self.stream,
                {
                    "type": "AccountDeleted",
                    "externalId": event.external_id,
                    "payload": event.to_json(),
                },
            )
        except redis.RedisError as exc:
            logger.error(
                "Failed to publish account deletion event for %s: %s",
                event.external_id,
                exc,
            )
            return PublishResult(published=False, error=str(exc))

        if isinstance(message_id, bytes):
            message_id = message_id.decode()
        logger.info(
            "Published account deletion event for %s (%s) to %s",
            event.external_id,
            message_id,
            self.stream,
        )
        return PublishResult(published=True, message_id=message_id)


def create_redis_client(url: str) -> redis.Redis:
    return redis.Redis.from_url(
        url,
        socket_timeout=5,
        socket_connect_timeout=5,
        decode_responses=True,
    )
