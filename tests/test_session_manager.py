"""
@PURPOSE: 测试 auth/session.py 会话管理器和 core/session_store.py 内存存储
@OUTLINE:
  - class TestSerialization: 序列化只包含非敏感字段,反序列化失败时视为匿名
  - class TestSessionLifecycle: 登录、解析、登出、会话固定防护
  - class TestCookieSigning: Cookie 签名校验
  - class TestMemorySessionStore: TTL 过期与清理
  - class TestRedisSessionStore: 键前缀、SETEX TTL、删除
@DEPENDENCIES:
  - 外部: pytest, pytest-asyncio
  - 内部: authgate.auth.session, authgate.core.session_store
"""

from __future__ import annotations

import json

import pytest

from authgate.auth.service import CredentialVerifier, Principal, RegistrationService
from authgate.auth.session import SessionManager
from authgate.core.session_store import MemorySessionStore, RedisSessionStore
from authgate.errors import InternalAuthError

from .fakes import BrokenSessionStore, FakeRedis


class TestSerialization:
    """测试主体序列化."""

    def test_serialize_excludes_credential_hash(self, session_manager: SessionManager) -> None:
        blob = session_manager.serialize(Principal(user_id="u-1", username="alice"))

        data = json.loads(blob)
        assert data["user_id"] == "u-1"
        assert data["username"] == "alice"
        assert not any("password" in key or "hash" in key for key in data)

    def test_deserialize_round_trip(self, session_manager: SessionManager) -> None:
        principal = Principal(user_id="u-1", username="alice")

        assert session_manager.deserialize(session_manager.serialize(principal)) == principal

    @pytest.mark.parametrize(
        "blob",
        [
            None,
            "",
            "not json",
            "[1, 2, 3]",
            '{"username": "alice"}',
            '{"user_id": "u-1", "username": "  "}',
            '{"user_id": 42, "username": "alice"}',
            b"\xff\xfe",
        ],
    )
    def test_deserialize_fails_closed(self, session_manager: SessionManager, blob) -> None:
        assert session_manager.deserialize(blob) is None


class TestSessionLifecycle:
    """测试会话生命周期."""

    @pytest.mark.asyncio
    async def test_login_establishes_session(
        self,
        registration: RegistrationService,
        session_manager: SessionManager,
        session_store: MemorySessionStore,
    ) -> None:
        await registration.register("alice", "pw1")

        session = await session_manager.login("alice", "pw1")

        assert session is not None
        assert session.principal.username == "alice"
        assert session.expires_at > session.created_at
        stored = await session_store.get(session.session_id)
        assert stored is not None
        assert "pw1" not in stored
        assert "$2b$" not in stored

        resolved = await session_manager.resolve(session.session_id)
        assert resolved is not None
        assert resolved.principal == session.principal
        assert await session_manager.is_authenticated(session.session_id)

    @pytest.mark.asyncio
    async def test_rejected_login_leaves_anonymous(
        self,
        registration: RegistrationService,
        session_manager: SessionManager,
        session_store: MemorySessionStore,
    ) -> None:
        await registration.register("alice", "pw1")

        assert await session_manager.login("alice", "wrong") is None
        assert await session_manager.login("nobody", "x") is None
        assert len(session_store) == 0

    @pytest.mark.asyncio
    async def test_logout_terminates_session(
        self, registration: RegistrationService, session_manager: SessionManager
    ) -> None:
        await registration.register("alice", "pw1")
        session = await session_manager.login("alice", "pw1")

        await session_manager.logout(session.session_id)

        assert await session_manager.resolve(session.session_id) is None
        assert not await session_manager.is_authenticated(session.session_id)

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, session_manager: SessionManager) -> None:
        await session_manager.logout(None)
        await session_manager.logout("")
        await session_manager.logout("never-existed")
        await session_manager.logout("never-existed")

    @pytest.mark.asyncio
    async def test_new_login_issues_fresh_session_and_drops_previous(
        self, registration: RegistrationService, session_manager: SessionManager
    ) -> None:
        await registration.register("alice", "pw1")
        first = await session_manager.login("alice", "pw1")
        await session_manager.logout(first.session_id)

        second = await session_manager.login("alice", "pw1")
        third = await session_manager.login("alice", "pw1", previous_session_id=second.session_id)

        assert len({first.session_id, second.session_id, third.session_id}) == 3
        assert await session_manager.resolve(first.session_id) is None
        assert await session_manager.resolve(second.session_id) is None
        assert await session_manager.resolve(third.session_id) is not None

    @pytest.mark.asyncio
    async def test_resolve_unknown_or_empty_id(self, session_manager: SessionManager) -> None:
        assert await session_manager.resolve(None) is None
        assert await session_manager.resolve("") is None
        assert await session_manager.resolve("unknown") is None

    @pytest.mark.asyncio
    async def test_resolve_with_corrupted_blob_is_anonymous(
        self, session_manager: SessionManager, session_store: MemorySessionStore
    ) -> None:
        await session_store.set("corrupted", "{not json", 60)

        assert await session_manager.resolve("corrupted") is None

    @pytest.mark.asyncio
    async def test_broken_store(
        self, registration: RegistrationService, verifier: CredentialVerifier
    ) -> None:
        manager = SessionManager(BrokenSessionStore(), verifier, secret="s", ttl_seconds=60)
        await registration.register("alice", "pw1")

        with pytest.raises(InternalAuthError):
            await manager.login("alice", "pw1")
        assert await manager.resolve("any") is None
        await manager.logout("any")

    def test_empty_secret_rejected(self, verifier: CredentialVerifier) -> None:
        with pytest.raises(ValueError):
            SessionManager(MemorySessionStore(), verifier, secret="")


class TestCookieSigning:
    """测试会话 Cookie 签名."""

    def test_sign_and_unsign(self, session_manager: SessionManager) -> None:
        signed = session_manager.sign_session_id("abc123")

        assert signed != "abc123"
        assert session_manager.unsign_session_id(signed) == "abc123"

    def test_tampered_cookie_is_rejected(
        self, session_manager: SessionManager, verifier: CredentialVerifier
    ) -> None:
        signed = session_manager.sign_session_id("abc123")
        other = SessionManager(MemorySessionStore(), verifier, secret="other-secret")

        assert session_manager.unsign_session_id(signed + "x") is None
        assert session_manager.unsign_session_id("abc123") is None
        assert session_manager.unsign_session_id(None) is None
        assert other.unsign_session_id(signed) is None


class TestMemorySessionStore:
    """测试内存会话存储."""

    @pytest.mark.asyncio
    async def test_set_get_delete(self) -> None:
        store = MemorySessionStore()

        await store.set("k", "v", 60)
        assert await store.get("k") == "v"

        await store.delete("k")
        await store.delete("k")
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_expired_entries_are_dropped(self) -> None:
        now = [1000.0]
        store = MemorySessionStore(clock=lambda: now[0])

        await store.set("k", "v", 10)
        now[0] += 9
        assert await store.get("k") == "v"
        now[0] += 2
        assert await store.get("k") is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_rejects_non_positive_ttl(self) -> None:
        with pytest.raises(ValueError):
            await MemorySessionStore().set("k", "v", 0)

    @pytest.mark.asyncio
    async def test_set_purges_expired_entries(self) -> None:
        now = [1000.0]
        store = MemorySessionStore(clock=lambda: now[0])
        for i in range(1000):
            await store.set(f"old-{i}", "v", 10)

        now[0] += 100
        await store.set("fresh", "v", 10)

        assert len(store) == 1
        assert await store.get("fresh") == "v"

    @pytest.mark.asyncio
    async def test_set_keeps_live_entries(self) -> None:
        now = [1000.0]
        store = MemorySessionStore(clock=lambda: now[0])
        await store.set("short", "a", 5)
        await store.set("long", "b", 50)

        now[0] += 10
        await store.set("new", "c", 5)

        assert len(store) == 2
        assert await store.get("long") == "b"
        assert await store.get("short") is None


class TestRedisSessionStore:
    """测试 Redis 会话存储(使用 FakeRedis)."""

    @pytest.mark.asyncio
    async def test_set_uses_prefixed_key_and_setex_ttl(self) -> None:
        fake = FakeRedis()
        store = RedisSessionStore(fake)

        await store.set("abc", '{"user_id": "u-1"}', 600)

        assert fake.calls == [("setex", "session:abc", 600)]
        assert fake.ttls == {"session:abc": 600}
        assert await store.get("abc") == '{"user_id": "u-1"}'
        assert fake.calls[-1] == ("get", "session:abc")

    @pytest.mark.asyncio
    async def test_get_returns_none_after_delete(self) -> None:
        fake = FakeRedis()
        store = RedisSessionStore(fake)
        await store.set("abc", "blob", 60)

        await store.delete("abc")
        await store.delete("abc")

        assert await store.get("abc") is None
        assert ("delete", "session:abc") in fake.calls
        assert fake.data == {}

    @pytest.mark.asyncio
    async def test_unknown_session_is_none(self) -> None:
        assert await RedisSessionStore(FakeRedis()).get("missing") is None

    @pytest.mark.asyncio
    async def test_ping(self) -> None:
        fake = FakeRedis()

        assert await RedisSessionStore(fake).ping() is True
        assert fake.calls == [("ping",)]

    @pytest.mark.asyncio
    async def test_session_manager_round_trip_through_redis(
        self, registration: RegistrationService, verifier: CredentialVerifier
    ) -> None:
        fake = FakeRedis()
        manager = SessionManager(RedisSessionStore(fake), verifier, secret="s", ttl_seconds=900)
        await registration.register("alice", "pw1")

        session = await manager.login("alice", "pw1")

        key = f"session:{session.session_id}"
        assert fake.ttls[key] == 900
        assert "pw1" not in fake.data[key]
        assert (await manager.resolve(session.session_id)).principal.username == "alice"

        await manager.logout(session.session_id)
        assert key not in fake.data
        assert await manager.resolve(session.session_id) is None
