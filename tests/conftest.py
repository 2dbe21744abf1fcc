import os
import tempfile

# 앱 import 전에 설정: lifespan이 만드는 엔진도 임시 파일 DB를 사용
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(), "app.db")

from datetime import datetime
from typing import AsyncGenerator, List, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine

import app.models  # noqa: F401
from app.main import app
from app.api.dependencies import get_coordinator
from app.database.sql import Base, build_engine, build_session_factory
from app.models.friendships import Friendship
from app.models.messages import Message
from app.models.rooms import Room
from app.models.room_members import RoomMember
from app.models.users import User
from app.services.friendship_service import sorted_pair
from app.services.persistence import SqlPersistenceGateway
from app.utils.auth import get_password_hash
from app.websockets.connection_manager import ChatCoordinator
from app.websockets.session_store import SessionStore



class FakeClock:
    """세션 만료 테스트용 시계"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeConnection:
    """보낸 이벤트를 기록하는 가짜 실시간 연결"""

    def __init__(self, name: str = "conn"):
        self.name = name
        self.events = []
        self.fail = False

    async def send_event(self, event: str, data=None):
        if self.fail:
            raise ConnectionError(f"{self.name} is closed")
        self.events.append((event, data))

    def received(self, event: str) -> list:
        return [data for name, data in self.events if name == event]

    def event_names(self) -> List[str]:
        return [name for name, _ in self.events]

    def clear(self):
        self.events = []

    def __repr__(self):
        return f"<FakeConnection({self.name})>"


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 비동기 데이터베이스 엔진 생성 (세션마다 별도 연결을 쓰는 파일 DB)"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    # 테이블 생성
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # 정리
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest.fixture
def gateway(session_factory) -> SqlPersistenceGateway:
    return SqlPersistenceGateway(session_factory)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_store(clock) -> SessionStore:
    return SessionStore(ttl_seconds=7 * 24 * 60 * 60, sweep_interval_seconds=3600, clock=clock)


@pytest_asyncio.fixture
async def coordinator(gateway, session_store) -> AsyncGenerator[ChatCoordinator, None]:
    """백그라운드 정리 작업 없이 사용하는 코디네이터"""
    coordinator = ChatCoordinator(gateway, sessions=session_store)

    yield coordinator

    await coordinator.drain_background_tasks()
    await coordinator.stop()


@pytest_asyncio.fixture
async def client(coordinator) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트"""
    app.dependency_overrides[get_coordinator] = lambda: coordinator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# 데이터 시드 헬퍼
# =============================================================================

async def create_user(session_factory, username: str, password: str = "secret123") -> User:
    async with session_factory() as db:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=get_password_hash(password)
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user


async def create_room(
    session_factory,
    room_id: str,
    created_by: str,
    invite_code: str,
    name: str = "Test Room"
) -> Room:
    async with session_factory() as db:
        room = Room(id=room_id, name=name, created_by=created_by, invite_code=invite_code)
        db.add(room)
        await db.commit()
        await db.refresh(room)
        return room


async def add_member(
    session_factory,
    room_id: str,
    username: str,
    joined_at: Optional[datetime] = None
) -> RoomMember:
    async with session_factory() as db:
        member = RoomMember(room_id=room_id, username=username)
        if joined_at is not None:
            member.joined_at = joined_at
        db.add(member)
        await db.commit()
        await db.refresh(member)
        return member


async def add_message(session_factory, room_id: str, sender: str, text: str, time: datetime) -> Message:
    async with session_factory() as db:
        message = Message(room_id=room_id, sender=sender, text=text, time=time)
        db.add(message)
        await db.commit()
        await db.refresh(message)
        return message


async def make_friends(session_factory, user_a: str, user_b: str, status: str = "accepted") -> Friendship:
    user1, user2 = sorted_pair(user_a, user_b)
    async with session_factory() as db:
        friendship = Friendship(user1=user1, user2=user2, status=status, requested_by=user_a)
        db.add(friendship)
        await db.commit()
        await db.refresh(friendship)
        return friendship


@pytest_asyncio.fixture
async def users(session_factory):
    """alice, bob, carol"""
    return {
        name: await create_user(session_factory, name)
        for name in ("alice", "bob", "carol")
    }


@pytest_asyncio.fixture
async def room_1(session_factory, users) -> Room:
    """bob이 만든 room_1 (초대 코드 ABC123), alice와 bob이 멤버"""
    room = await create_room(session_factory, "room_1", created_by="bob", invite_code="ABC123")
    await add_member(session_factory, "room_1", "bob")
    await add_member(session_factory, "room_1", "alice")
    return room


@pytest.fixture
def session_headers(coordinator):
    """사용자 세션을 발급하고 X-Session-Id 헤더를 반환"""
    def _headers(username: str) -> dict:
        return {"X-Session-Id": coordinator.sessions.issue(username)}
    return _headers
