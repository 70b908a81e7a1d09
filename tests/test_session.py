# =============================================================================
# Unit Tests — Session Context & Credential Stores
# =============================================================================
#
# Redis is mocked; no server needed.
# =============================================================================

from __future__ import annotations

import asyncio
import dataclasses
from unittest.mock import AsyncMock, MagicMock

import pytest

from finsage.config import Settings
from finsage.errors import EmptyInput
from finsage.services.session import (
    ChatMessage,
    MemorySessionStore,
    RedisSessionStore,
    SessionContext,
    SessionRegistry,
    create_session_store,
)


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def _context(store=None, session_id: str = "s1") -> SessionContext:
    return SessionContext(session_id, store or MemorySessionStore(), Settings())


# ---------------------------------------------------------------------------
# Credential
# ---------------------------------------------------------------------------


class TestCredential:
    def test_set_trims_and_mirrors(self):
        store = MemorySessionStore()
        ctx = _context(store)
        _run(ctx.set_api_key("  abc123  "))
        assert _run(ctx.get_api_key()) == "abc123"
        assert _run(store.get("s1", "gemini_api_key")) == "abc123"
        assert _run(ctx.has_api_key()) is True

    def test_set_overwrites(self):
        ctx = _context()
        _run(ctx.set_api_key("first"))
        _run(ctx.set_api_key("second"))
        assert _run(ctx.get_api_key()) == "second"

    @pytest.mark.parametrize("key", ["", "   "])
    def test_blank_key_rejected(self, key):
        with pytest.raises(EmptyInput):
            _run(_context().set_api_key(key))

    def test_placeholder_is_not_a_key(self):
        ctx = _context()
        _run(ctx.set_api_key("YOUR_GEMINI_API_KEY"))
        assert _run(ctx.has_api_key()) is False

    def test_remove_clears_both_copies(self):
        store = MemorySessionStore()
        ctx = _context(store)
        _run(ctx.set_api_key("abc123"))
        _run(ctx.remove_api_key())
        assert _run(ctx.get_api_key()) is None
        assert _run(store.get("s1", "gemini_api_key")) is None
        assert _run(ctx.has_api_key()) is False

    def test_key_restored_from_store(self):
        store = MemorySessionStore()
        _run(store.set("s1", "gemini_api_key", "persisted"))
        assert _run(_context(store).get_api_key()) == "persisted"

    def test_sessions_are_isolated(self):
        store = MemorySessionStore()
        first = _context(store, "s1")
        second = _context(store, "s2")
        _run(first.set_api_key("abc123"))
        assert _run(second.has_api_key()) is False


# ---------------------------------------------------------------------------
# Chat history & uploads
# ---------------------------------------------------------------------------


class TestSessionState:
    def test_messages_append_and_clear(self):
        ctx = _context()
        ctx.add_message(ChatMessage(content="hello", role="user"))
        ctx.add_message(ChatMessage(content="hi", role="assistant", confidence=0.98))
        assert [m.role for m in ctx.messages] == ["user", "assistant"]
        ctx.clear_messages()
        assert ctx.messages == []

    def test_messages_are_immutable(self):
        message = ChatMessage(content="hello", role="user")
        with pytest.raises(dataclasses.FrozenInstanceError):
            message.content = "changed"

    def test_message_ids_are_unique(self):
        first = ChatMessage(content="a", role="user")
        second = ChatMessage(content="a", role="user")
        assert first.id != second.id

    def test_latest_file(self):
        ctx = _context()
        assert ctx.latest_file is None
        ctx.add_processed_file("first")
        ctx.add_processed_file("second")
        assert ctx.latest_file == "second"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _registry(store=None, clock=None, **overrides) -> SessionRegistry:
    return SessionRegistry(
        store=store or MemorySessionStore(),
        config=Settings(**overrides),
        clock=clock or FakeClock(),
    )


class TestSessionRegistry:
    def test_new_session_gets_generated_id(self):
        registry = _registry()
        ctx = _run(registry.get_or_create(None))
        assert len(ctx.session_id) == 32
        assert len(registry) == 1

    def test_known_id_returns_same_context(self):
        registry = _registry()
        ctx = _run(registry.get_or_create(None))
        assert _run(registry.get_or_create(ctx.session_id)) is ctx
        assert len(registry) == 1

    def test_unknown_id_is_replaced(self):
        registry = _registry()
        ctx = _run(registry.get_or_create("forged-1"))
        assert ctx.session_id != "forged-1"
        assert "forged-1" not in registry

    def test_unknown_ids_do_not_accumulate_under_client_names(self):
        registry = _registry()
        for i in range(50):
            _run(registry.get_or_create(f"forged-{i}"))
        assert not any(f"forged-{i}" in registry for i in range(50))

    def test_id_with_stored_credential_is_adopted(self):
        store = MemorySessionStore()
        _run(store.set("restored", "gemini_api_key", "persisted"))
        registry = _registry(store)
        ctx = _run(registry.get_or_create("restored"))
        assert ctx.session_id == "restored"
        assert _run(ctx.has_api_key()) is True

    def test_idle_sessions_are_evicted(self):
        store = MemorySessionStore()
        clock = FakeClock()
        registry = _registry(store, clock, session_ttl_seconds=60)
        idle = _run(registry.get_or_create(None))
        _run(idle.set_api_key("abc123"))

        clock.now = 61.0
        _run(registry.get_or_create(None))

        assert idle.session_id not in registry
        assert len(registry) == 1
        assert _run(store.get(idle.session_id, "gemini_api_key")) is None

    def test_access_keeps_session_alive(self):
        clock = FakeClock()
        registry = _registry(clock=clock, session_ttl_seconds=60)
        ctx = _run(registry.get_or_create(None))

        clock.now = 50.0
        assert _run(registry.get_or_create(ctx.session_id)) is ctx
        clock.now = 100.0
        assert _run(registry.get_or_create(ctx.session_id)) is ctx


# ---------------------------------------------------------------------------
# Redis store
# ---------------------------------------------------------------------------


class TestRedisSessionStore:
    def test_set_uses_namespaced_key_and_ttl(self):
        client = MagicMock()
        client.set = AsyncMock()
        store = RedisSessionStore("redis://unused", ttl_seconds=600, client=client)
        _run(store.set("s1", "gemini_api_key", "abc"))
        client.set.assert_awaited_once_with("session:s1:gemini_api_key", "abc", ex=600)

    def test_get_returns_stored_value(self):
        client = MagicMock()
        client.get = AsyncMock(return_value="abc")
        store = RedisSessionStore("redis://unused", ttl_seconds=600, client=client)
        assert _run(store.get("s1", "gemini_api_key")) == "abc"

    def test_delete(self):
        client = MagicMock()
        client.delete = AsyncMock()
        store = RedisSessionStore("redis://unused", ttl_seconds=600, client=client)
        _run(store.delete("s1", "gemini_api_key"))
        client.delete.assert_awaited_once_with("session:s1:gemini_api_key")

    def test_redis_unavailable_degrades_gracefully(self):
        client = MagicMock()
        client.get = AsyncMock(side_effect=ConnectionError("Redis down"))
        client.set = AsyncMock(side_effect=ConnectionError("Redis down"))
        store = RedisSessionStore("redis://unused", ttl_seconds=600, client=client)
        ctx = _context(store)
        _run(ctx.set_api_key("abc123"))  # Should not raise
        assert _run(ctx.has_api_key()) is True
        assert _run(store.get("s1", "gemini_api_key")) is None


class TestCreateSessionStore:
    def test_memory_is_default(self):
        assert isinstance(create_session_store(Settings()), MemorySessionStore)

    def test_redis_backend(self):
        store = create_session_store(Settings(session_backend="redis"))
        assert isinstance(store, RedisSessionStore)
