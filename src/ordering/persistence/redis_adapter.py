"""Redis key-value store — durable cart storage shared across processes.

Values live under ``<prefix><key>``. Every write is announced on a pub/sub
channel together with the writer's origin id, so other processes can
react the way browser tabs react to storage events. Subscribers pump
notifications with ``poll()`` from their own loop; nothing is delivered
from a background thread.
"""

import json
from uuid import uuid4

import redis
import structlog
from redis.exceptions import RedisError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ordering import config
from ordering.persistence.port import KeyValueStore, StorageChange, StorageListener

logger = structlog.get_logger(__name__)


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(RedisError),
    )


class RedisKeyValueStore(KeyValueStore):
    def __init__(
        self,
        client: redis.Redis | None = None,
        url: str | None = None,
        channel: str | None = None,
        prefix: str | None = None,
        origin: str | None = None,
    ):
        self.redis = client or redis.Redis.from_url(url or config.REDIS_URL, decode_responses=True)
        self.channel = channel or config.CART_STORAGE_CHANNEL
        self.prefix = config.CART_STORAGE_PREFIX if prefix is None else prefix
        self.origin = origin or uuid4().hex
        self._listeners: list[StorageListener] = []
        self._pubsub = None

    def _name(self, key: str) -> str:
        return f"{self.prefix}{key}"

    @redis_retry()
    def get(self, key: str) -> str | None:
        return self.redis.get(self._name(key))

    @redis_retry()
    def set(self, key: str, value: str) -> None:
        # SET ... GET returns the previous value in the same round trip
        old_value = self.redis.set(self._name(key), value, get=True)
        self._announce(key, value, old_value)

    @redis_retry()
    def delete(self, key: str) -> None:
        old_value = self.redis.getdel(self._name(key))
        if old_value is None:
            return
        self._announce(key, None, old_value)

    def subscribe(self, listener: StorageListener):
        if self._pubsub is None:
            self._pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
            self._pubsub.subscribe(self.channel)
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def poll(self, timeout: float = 0.0) -> int:
        """Deliver pending change notifications to listeners.

        Returns:
            Number of notifications delivered.
        """
        if self._pubsub is None:
            return 0

        delivered = 0
        message = self._pubsub.get_message(timeout=timeout)
        while message is not None:
            change = self._parse(message)
            if change is not None:
                for listener in list(self._listeners):
                    try:
                        listener(change)
                    except Exception as exc:
                        logger.warning("Storage listener failed", key=change.key, error=str(exc))
                delivered += 1
            message = self._pubsub.get_message(timeout=0.0)
        return delivered

    def close(self) -> None:
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None
        self._listeners.clear()

    def _announce(self, key: str, new_value: str | None, old_value: str | None) -> None:
        payload = {"key": key, "new_value": new_value, "old_value": old_value, "origin": self.origin}
        self.redis.publish(self.channel, json.dumps(payload))

    def _parse(self, message: dict) -> StorageChange | None:
        if message.get("type") != "message":
            return None
        try:
            payload = json.loads(message["data"])
        except (TypeError, ValueError):
            payload = None
        if not isinstance(payload, dict) or "key" not in payload:
            logger.warning("Discarding malformed storage notification", channel=self.channel)
            return None
        if payload.get("origin") == self.origin:
            return None
        return StorageChange(
            key=payload["key"],
            new_value=payload.get("new_value"),
            old_value=payload.get("old_value"),
        )
