import asyncio

import pytest

from app.core.errors import IdentityMismatch, SessionExpired, SessionNotFound
from app.websockets.session_store import SessionStore

from tests.conftest import FakeClock

TTL = 7 * 24 * 60 * 60


class TestSessionStore:
    """세션 저장소 테스트"""

    def test_issue_and_validate(self, session_store):
        """발급한 토큰은 소유자를 반환"""
        token = session_store.issue("alice")

        assert token.startswith("session_")
        assert session_store.validate(token) == "alice"
        assert session_store.validate(token, expected_identity="alice") == "alice"

    def test_tokens_are_unique(self, session_store):
        tokens = {session_store.issue("alice") for _ in range(50)}
        assert len(tokens) == 50
        assert len(session_store) == 50

    def test_validate_unknown_token(self, session_store):
        with pytest.raises(SessionNotFound):
            session_store.validate("session_unknown")

        with pytest.raises(SessionNotFound):
            session_store.validate(None)

    def test_validate_identity_mismatch(self, session_store):
        token = session_store.issue("alice")

        with pytest.raises(IdentityMismatch):
            session_store.validate(token, expected_identity="bob")

        # 불일치는 세션을 삭제하지 않음
        assert session_store.validate(token) == "alice"

    def test_sliding_expiry_within_ttl(self, session_store, clock):
        """TTL 안에서 검증할 때마다 만료가 연장됨"""
        token = session_store.issue("alice")

        for _ in range(3):
            clock.advance(TTL - 1)
            assert session_store.validate(token) == "alice"

        assert token in session_store

    def test_expired_session_is_permanently_invalid(self, session_store, clock):
        token = session_store.issue("alice")
        clock.advance(TTL + 1)

        with pytest.raises(SessionExpired):
            session_store.validate(token)

        # 만료 시 삭제되므로 이후에는 항상 실패
        assert token not in session_store
        with pytest.raises(SessionNotFound):
            session_store.validate(token)

    def test_revoke_is_idempotent(self, session_store):
        token = session_store.issue("alice")

        assert session_store.revoke(token) == "alice"
        assert session_store.revoke(token) is None
        assert session_store.revoke("session_missing") is None
        assert session_store.revoke(None) is None

        with pytest.raises(SessionNotFound):
            session_store.validate(token)

    def test_sweep_evicts_only_expired(self, session_store, clock):
        stale = session_store.issue("alice")
        clock.advance(TTL - 10)
        fresh = session_store.issue("bob")
        clock.advance(20)

        assert session_store.sweep() == 1
        assert stale not in session_store
        assert fresh in session_store

    def test_sweep_never_evicts_recently_validated(self, session_store, clock):
        """만료 직전 검증된 세션은 정리 대상이 아님"""
        token = session_store.issue("alice")
        clock.advance(TTL)
        session_store.validate(token)
        clock.advance(1)

        assert session_store.sweep() == 0
        assert session_store.validate(token) == "alice"


class TestSessionSweeper:
    """백그라운드 정리 작업 테스트"""

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=10, sweep_interval_seconds=0.01, clock=clock)
        store.issue("alice")
        clock.advance(11)

        await store.start()
        assert store.running is True

        for _ in range(100):
            if len(store) == 0:
                break
            await asyncio.sleep(0.01)

        await store.stop()
        assert store.running is False
        assert store.task is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_start_twice_keeps_single_task(self):
        store = SessionStore(sweep_interval_seconds=3600)
        await store.start()
        task = store.task

        await store.start()
        assert store.task is task

        await store.stop()
