import secrets
import time
from datetime import datetime, timezone
from typing import Dict, Optional

import redis

from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD, SESSION_BACKEND, SESSION_TTL_SECONDS
from redis_keys import REDIS_SESSION_KEY
from logging_config import get_logger

logger = get_logger(__name__)


def generate_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionBackend:
    """Storage for the admin HTTP login flag."""

    def create(self) -> str:
        raise NotImplementedError

    def exists(self, session_id: Optional[str]) -> bool:
        raise NotImplementedError

    def delete(self, session_id: Optional[str]) -> bool:
        raise NotImplementedError


class MemorySessionBackend(SessionBackend):
    def __init__(self, ttl: int = SESSION_TTL_SECONDS, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        # Format: {session_id: expiry on the clock}
        self._sessions: Dict[str, float] = {}
        logger.info(f"Initializing in-memory session backend with TTL {ttl} seconds")

    def create(self) -> str:
        self._prune()
        session_id = generate_session_id()
        self._sessions[session_id] = self._clock() + self.ttl
        logger.debug(f"Admin session created (active sessions: {len(self._sessions)})")
        return session_id

    def exists(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        self._prune()
        return session_id in self._sessions

    def delete(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        return self._sessions.pop(session_id, None) is not None

    def _prune(self):
        now = self._clock()
        expired = [session_id for session_id, expires_at in self._sessions.items() if expires_at <= now]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.debug(f"Pruned {len(expired)} expired admin sessions")


class RedisSessionBackend(SessionBackend):
    def __init__(self, redis_client: Optional[redis.Redis] = None, ttl: int = SESSION_TTL_SECONDS):
        self.ttl = ttl
        if redis_client is None:
            logger.info(f"Initializing RedisSessionBackend with connection to {REDIS_HOST}:{REDIS_PORT}")
            try:
                redis_client = redis.Redis(host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, decode_responses=True)
                redis_client.ping()
                logger.info(f"Redis client connected successfully to {REDIS_HOST}:{REDIS_PORT}")
            except Exception as e:
                logger.error(f"Failed to connect to Redis at {REDIS_HOST}:{REDIS_PORT}: {e}", exc_info=True)
                raise
        self.redis_client = redis_client

    def create(self) -> str:
        session_id = generate_session_id()
        key = REDIS_SESSION_KEY.format(session_id=session_id)
        self.redis_client.set(key, datetime.now(timezone.utc).isoformat(), ex=self.ttl)
        logger.debug(f"Admin session stored with TTL {self.ttl} seconds")
        return session_id

    def exists(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        return bool(self.redis_client.exists(REDIS_SESSION_KEY.format(session_id=session_id)))

    def delete(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        deleted = self.redis_client.delete(REDIS_SESSION_KEY.format(session_id=session_id))
        logger.debug(f"Admin session deleted: {bool(deleted)}")
        return bool(deleted)


def create_session_backend(kind: str = SESSION_BACKEND) -> SessionBackend:
    if kind == "redis":
        return RedisSessionBackend()
    if kind == "memory":
        return MemorySessionBackend()
    raise ValueError(f"Unknown session backend: {kind}")
