import time
import threading
import redis
from typing import Any, Dict, Optional
from loguru import logger


class Idem:
    """Redis-based idempotency checker so redelivered webhooks are processed once."""

    def __init__(self, redis_url: Optional[str] = None, ttl: int = 3600, client: Any = None):
        self.ttl = ttl
        self.r = client
        self._lock = threading.Lock()
        self._memory_keys: Dict[str, float] = {}

        if self.r is None and redis_url:
            try:
                self.r = redis.from_url(redis_url)
                self.r.ping()
                logger.info("Redis connection established successfully")
            except redis.RedisError as e:
                logger.error(f"Redis connection failed: {e}")
                # Fallback to in-memory storage (single process only)
                self.r = None

    def check_and_set(self, key: str) -> bool:
        """
        Check if key exists and set it if it doesn't.

        Args:
            key: Unique identifier for the delivery

        Returns:
            True if key was set (first delivery), False if already seen
        """
        if not key:
            logger.warning("Empty key provided to idempotency check")
            return False

        if self.r is not None:
            try:
                result = self.r.set(
                    name=f"idem:{key}",
                    value=int(time.time()),
                    ex=self.ttl,
                    nx=True,
                )
                return bool(result)
            except redis.RedisError as e:
                logger.error(f"Idempotency check failed: {e}")
                # Fail open - allow processing to continue
                return True

        now = time.time()
        with self._lock:
            # Forget every expired delivery, not only this one
            stale = [k for k, seen_at in self._memory_keys.items() if now - seen_at >= self.ttl]
            for k in stale:
                del self._memory_keys[k]
            if key in self._memory_keys:
                return False
            self._memory_keys[key] = now
            return True

    def clear_key(self, key: str) -> bool:
        """Forget a key so the next delivery is processed again."""
        if self.r is not None:
            try:
                return bool(self.r.delete(f"idem:{key}"))
            except redis.RedisError as e:
                logger.error(f"Failed to clear key: {e}")
                return False
        with self._lock:
            return self._memory_keys.pop(key, None) is not None
