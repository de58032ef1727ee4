import json
import threading
import redis
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Tuple
from loguru import logger

KEY_PREFIX = "callmap:"


@dataclass(frozen=True)
class CorrelationRecord:
    """One outbound call attempt and the CRM person that caused it."""
    call_id: str
    contact_name: str
    phone_number: str
    originating_title: str
    contact_id: int
    created_at: datetime

    def to_json(self) -> str:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: Any) -> "CorrelationRecord":
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data: Dict[str, Any] = json.loads(raw)
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        data["contact_id"] = int(data["contact_id"])
        return cls(**data)


class CorrelationStore:
    """
    Maps outbound call ids to the person that triggered the call.

    Retell only addresses its call_analyzed callback by call id, while activities
    must be attached to a Pipedrive person id, so the join happens here. Entries
    live in Redis with a TTL when REDIS_URL is configured; otherwise they are kept
    in process memory and expire lazily on lookup.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl: int = 72 * 3600, client: Any = None):
        self.ttl = ttl
        self._lock = threading.Lock()
        self._records: Dict[str, CorrelationRecord] = {}
        self.r = client

        if self.r is None and redis_url:
            try:
                self.r = redis.from_url(redis_url)
                self.r.ping()
                logger.info("Correlation store connected to Redis")
            except redis.RedisError as e:
                logger.error(f"Redis connection failed, keeping call mappings in memory: {e}")
                self.r = None

    @property
    def backend(self) -> str:
        return "redis" if self.r is not None else "memory"

    def record(
        self,
        call_id: str,
        contact_name: str,
        phone_number: str,
        originating_title: str,
        contact_id: int,
    ) -> CorrelationRecord:
        """
        Store (or overwrite) the mapping for a call id.

        Args:
            call_id: Retell call id or a "failed-" placeholder
            contact_name: Display name of the person being called
            phone_number: Normalized destination number
            originating_title: Title of the lead that triggered the call
            contact_id: Pipedrive person id

        Returns:
            The stored record
        """
        if not call_id:
            raise ValueError("call_id must be non-empty")

        entry = CorrelationRecord(
            call_id=call_id,
            contact_name=contact_name,
            phone_number=phone_number,
            originating_title=originating_title,
            contact_id=int(contact_id),
            created_at=datetime.now(timezone.utc),
        )

        if self.r is not None:
            try:
                self.r.set(name=f"{KEY_PREFIX}{call_id}", value=entry.to_json(), ex=self.ttl or None)
                logger.info(f"Stored call mapping for {call_id}: {contact_name} ({phone_number})")
                return entry
            except redis.RedisError as e:
                logger.error(f"Redis write failed for {call_id}, falling back to memory: {e}")

        with self._lock:
            self._sweep()
            self._records[call_id] = entry
        logger.info(f"Stored call mapping for {call_id}: {contact_name} ({phone_number})")
        return entry

    def resolve(self, call_id: str) -> Tuple[Optional[CorrelationRecord], bool]:
        """Look up a call id. Never raises; a miss returns (None, False)."""
        if not call_id:
            return None, False

        if self.r is not None:
            try:
                raw = self.r.get(f"{KEY_PREFIX}{call_id}")
                if raw:
                    return CorrelationRecord.from_json(raw), True
            except redis.RedisError as e:
                logger.error(f"Redis lookup failed for {call_id}: {e}")
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"Corrupt call mapping for {call_id}: {e}")

        with self._lock:
            entry = self._records.get(call_id)
            if entry is None:
                return None, False
            if self._expired(entry):
                del self._records[call_id]
                logger.info(f"Call mapping for {call_id} expired")
                return None, False
        return entry, True

    def prune(self) -> int:
        """Drop expired in-memory entries; returns how many were removed."""
        with self._lock:
            return self._sweep()

    def _sweep(self) -> int:
        # Caller holds the lock
        stale = [key for key, entry in self._records.items() if self._expired(entry)]
        for key in stale:
            del self._records[key]
        if stale:
            logger.info(f"Pruned {len(stale)} expired call mappings")
        return len(stale)

    def _expired(self, entry: CorrelationRecord) -> bool:
        if not self.ttl:
            return False
        age = (datetime.now(timezone.utc) - entry.created_at).total_seconds()
        return age > self.ttl

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
