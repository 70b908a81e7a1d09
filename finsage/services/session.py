# =============================================================================
# Session Context — Per-Session Credential, Chat History and Uploads
# =============================================================================
#
# Holds everything the dashboard keeps "for this browser session":
#   - the Gemini API key (the credential that gates chat and ingestion)
#   - the chat message list
#   - processed files and their ingestion jobs
#
# DESIGN DECISION: An explicit SessionContext passed to the resolver and the
# ingestion pipeline, instead of one process-wide service holding `apiKey`.
# Two sessions never see each other's key or history.
#
# DESIGN DECISION: The credential is mirrored into a session-scoped store,
# like the browser's sessionStorage slot. Two backends:
#   - MemorySessionStore: in-process dict (default, no extra infra)
#   - RedisSessionStore: survives worker restarts, expires with a TTL
# Redis failures degrade gracefully: the in-memory copy on the context is
# still authoritative for the running process.
# =============================================================================

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal, Protocol

from finsage.config import Settings, settings
from finsage.errors import EmptyInput

if TYPE_CHECKING:
    from finsage.services.ingestion import IngestionJob, ProcessedFileData

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChatMessage:
    """One chat turn. Immutable once created."""

    content: str
    role: Literal["user", "assistant"]
    confidence: float | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


# ---------------------------------------------------------------------------
# Credential Stores
# ---------------------------------------------------------------------------


class SessionStore(Protocol):
    """Session-scoped key-value slots."""

    async def get(self, session_id: str, name: str) -> str | None: ...

    async def set(self, session_id: str, name: str, value: str) -> None: ...

    async def delete(self, session_id: str, name: str) -> None: ...


class MemorySessionStore:
    """Dict-backed store. Lives as long as the process."""

    def __init__(self) -> None:
        self._slots: dict[tuple[str, str], str] = {}

    async def get(self, session_id: str, name: str) -> str | None:
        return self._slots.get((session_id, name))

    async def set(self, session_id: str, name: str, value: str) -> None:
        self._slots[(session_id, name)] = value

    async def delete(self, session_id: str, name: str) -> None:
        self._slots.pop((session_id, name), None)


class RedisSessionStore:
    """
    Redis-backed store. Keys are `session:{id}:{name}` with a TTL, so a
    slot disappears when the session goes idle for `ttl_seconds`.

    Any Redis error is logged and treated as an empty slot.
    """

    def __init__(self, url: str, ttl_seconds: int, client=None) -> None:
        self._url = url
        self._ttl = ttl_seconds
        self._client = client

    def _get_client(self):
        """Lazily create and cache the async Redis client."""
        if self._client is None:
            import redis.asyncio as aioredis
            self._client = aioredis.from_url(self._url, decode_responses=True)
        return self._client

    @staticmethod
    def _key(session_id: str, name: str) -> str:
        return f"session:{session_id}:{name}"

    async def get(self, session_id: str, name: str) -> str | None:
        try:
            return await self._get_client().get(self._key(session_id, name))
        except Exception as e:
            logger.warning("Session store unavailable (Redis error): %s", e)
            return None

    async def set(self, session_id: str, name: str, value: str) -> None:
        try:
            await self._get_client().set(
                self._key(session_id, name), value, ex=self._ttl,
            )
        except Exception as e:
            logger.warning("Session store unavailable (Redis error): %s", e)

    async def delete(self, session_id: str, name: str) -> None:
        try:
            await self._get_client().delete(self._key(session_id, name))
        except Exception as e:
            logger.warning("Session store unavailable (Redis error): %s", e)


def create_session_store(config: Settings | None = None) -> SessionStore:
    """Build the store selected by `session_backend`."""
    config = config or settings
    if config.session_backend == "redis":
        logger.info("Using Redis session store at %s", config.session_redis_url)
        return RedisSessionStore(
            config.session_redis_url, config.session_ttl_seconds,
        )
    return MemorySessionStore()


# ---------------------------------------------------------------------------
# Session Context
# ---------------------------------------------------------------------------


class SessionContext:
    """
    State for one dashboard session.

    The credential lives on the context and is mirrored into the store
    under `settings.credential_slot`. Reads fall back to the store when the
    context has no key yet (e.g. after a process restart with Redis).
    """

    def __init__(
        self,
        session_id: str,
        store: SessionStore,
        config: Settings | None = None,
    ) -> None:
        self.session_id = session_id
        self._store = store
        self._config = config or settings
        self._api_key: str = ""
        self.messages: list[ChatMessage] = []
        self.processed_files: list[ProcessedFileData] = []
        self.jobs: dict[str, IngestionJob] = {}

    # --- Credential ---------------------------------------------------------

    async def set_api_key(self, key: str) -> None:
        if not key or not key.strip():
            raise EmptyInput("Invalid API key provided")
        self._api_key = key.strip()
        await self._store.set(
            self.session_id, self._config.credential_slot, self._api_key,
        )
        logger.info("API key set for session %s", self.session_id[:8])

    async def get_api_key(self) -> str | None:
        if not self._api_key:
            stored = await self._store.get(
                self.session_id, self._config.credential_slot,
            )
            if stored:
                self._api_key = stored
        return self._api_key or None

    async def has_api_key(self) -> bool:
        key = await self.get_api_key()
        return bool(key) and key != self._config.credential_placeholder

    async def remove_api_key(self) -> None:
        self._api_key = ""
        await self._store.delete(self.session_id, self._config.credential_slot)
        logger.info("API key removed for session %s", self.session_id[:8])

    # --- Chat history -------------------------------------------------------

    def add_message(self, message: ChatMessage) -> ChatMessage:
        self.messages.append(message)
        return message

    def clear_messages(self) -> None:
        self.messages.clear()

    # --- Uploads ------------------------------------------------------------

    def add_processed_file(self, data: ProcessedFileData) -> None:
        self.processed_files.append(data)

    @property
    def latest_file(self) -> ProcessedFileData | None:
        return self.processed_files[-1] if self.processed_files else None


class SessionRegistry:
    """
    Owns every live SessionContext, keyed by session id.

    Session ids are always generated here. A client-supplied id is only
    honoured when this registry already knows it, or when the store still
    holds a credential for it (a process restart with the Redis backend).
    Contexts idle for longer than `session_ttl_seconds` are evicted on the
    next lookup, together with their stored credential.
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        config: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or settings
        self._store = store or create_session_store(self._config)
        self._clock = clock
        self._sessions: dict[str, SessionContext] = {}
        self._last_seen: dict[str, float] = {}

    async def get_or_create(self, session_id: str | None) -> SessionContext:
        now = self._clock()
        await self._evict_idle(now)

        context = self._sessions.get(session_id) if session_id else None
        if context is None:
            if not session_id or not await self._has_stored_credential(session_id):
                session_id = uuid.uuid4().hex
            context = SessionContext(session_id, self._store, self._config)
            self._sessions[session_id] = context
            logger.debug("Created session %s", session_id[:8])
        self._last_seen[session_id] = now
        return context

    async def _has_stored_credential(self, session_id: str) -> bool:
        stored = await self._store.get(session_id, self._config.credential_slot)
        return bool(stored)

    async def _evict_idle(self, now: float) -> None:
        cutoff = now - self._config.session_ttl_seconds
        expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for session_id in expired:
            del self._sessions[session_id]
            del self._last_seen[session_id]
            await self._store.delete(session_id, self._config.credential_slot)
            logger.debug("Evicted idle session %s", session_id[:8])

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
