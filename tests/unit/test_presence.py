from app.websockets.presence import BindResult, PresenceRegistry

from tests.conftest import FakeConnection


class TestPresenceRegistry:
    """Presence 레지스트리 테스트"""

    def test_bind_new_identity(self):
        registry = PresenceRegistry()
        conn = FakeConnection("a1")

        outcome = registry.bind("alice", conn, "token-1")

        assert outcome.result is BindResult.BOUND
        assert outcome.previous is None
        entry = registry.lookup("alice")
        assert entry.connection is conn
        assert entry.token == "token-1"
        assert entry.current_room is None

    def test_second_login_rebinds(self):
        """마지막 연결이 이김: 이전 연결은 고아가 됨"""
        registry = PresenceRegistry()
        old, new = FakeConnection("old"), FakeConnection("new")

        registry.bind("alice", old, "token-1")
        outcome = registry.bind("alice", new, "token-2")

        assert outcome.result is BindResult.REBOUND
        assert outcome.previous is old
        assert outcome.displaced is None
        assert registry.lookup("alice").connection is new
        assert len(registry) == 1

    def test_orphan_unbind_keeps_new_entry(self):
        registry = PresenceRegistry()
        old, new = FakeConnection("old"), FakeConnection("new")
        registry.bind("alice", old, "token-1")
        registry.bind("alice", new, "token-2")

        assert registry.unbind(old) is None
        assert registry.lookup("alice").connection is new

        removed = registry.unbind(new)
        assert removed.identity == "alice"
        assert registry.lookup("alice") is None

    def test_unbind_unknown_connection(self):
        registry = PresenceRegistry()
        assert registry.unbind(FakeConnection()) is None

    def test_set_current_room(self):
        registry = PresenceRegistry()
        conn = FakeConnection()
        registry.bind("alice", conn, "token-1")

        assert registry.set_current_room("alice", "room_1") is True
        assert registry.lookup("alice").current_room == "room_1"

        assert registry.set_current_room("alice", None) is True
        assert registry.lookup("alice").current_room is None

    def test_set_current_room_unbound_is_noop(self):
        registry = PresenceRegistry()
        assert registry.set_current_room("ghost", "room_1") is False
        assert registry.lookup("ghost") is None

    def test_set_current_room_guarded_by_connection(self):
        registry = PresenceRegistry()
        old, new = FakeConnection("old"), FakeConnection("new")
        registry.bind("alice", old, "token-1")
        registry.bind("alice", new, "token-2")

        assert registry.set_current_room("alice", "room_1", connection=old) is False
        assert registry.lookup("alice").current_room is None

    def test_rebinding_connection_to_other_identity(self):
        """한 연결은 한 사용자에게만 바인딩됨"""
        registry = PresenceRegistry()
        conn = FakeConnection()
        registry.bind("alice", conn, "token-1")
        outcome = registry.bind("bob", conn, "token-2")

        assert outcome.displaced == "alice"
        assert registry.lookup("alice") is None
        assert registry.lookup("bob").connection is conn
        assert registry.online_identities() == ["bob"]
