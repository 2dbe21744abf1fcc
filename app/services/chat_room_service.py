"""
Chat room service layer for database operations.

Handles rooms and the persisted room-membership relation (who may join a room).
"""

import secrets
import time
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError

from app.models.rooms import Room
from app.models.room_members import RoomMember
from app.utils.auth import generate_invite_code
from app.utils.time_utils import utc_now

# 초대 코드 충돌 시 재시도 횟수
INVITE_CODE_ATTEMPTS = 5


def generate_room_id() -> str:
    return f"room_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


# =============================================================================
# Room CRUD Operations
# =============================================================================

async def create_room(db: AsyncSession, name: str, created_by: str) -> Room:
    """새 채팅방 생성 (초대 코드는 유일해야 함)"""
    for attempt in range(INVITE_CODE_ATTEMPTS):
        room = Room(
            id=generate_room_id(),
            name=name,
            created_by=created_by,
            invite_code=generate_invite_code(),
            created_at=utc_now()
        )
        db.add(room)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            if attempt == INVITE_CODE_ATTEMPTS - 1:
                raise
            continue
        await db.refresh(room)
        return room


async def find_room_by_id(db: AsyncSession, room_id: str) -> Optional[Room]:
    """채팅방 ID로 조회"""
    result = await db.execute(select(Room).where(Room.id == room_id))
    return result.scalar_one_or_none()


async def find_room_by_invite_code(db: AsyncSession, invite_code: str) -> Optional[Room]:
    """초대 코드로 조회"""
    result = await db.execute(select(Room).where(Room.invite_code == invite_code))
    return result.scalar_one_or_none()


async def get_user_rooms(db: AsyncSession, username: str) -> List[Room]:
    """사용자가 멤버인 채팅방 목록 (최근 생성순)"""
    query = select(Room).join(
        RoomMember, RoomMember.room_id == Room.id
    ).where(
        RoomMember.username == username
    ).order_by(Room.created_at.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


# =============================================================================
# Room Member Operations
# =============================================================================

async def find_room_member(db: AsyncSession, room_id: str, username: str) -> Optional[RoomMember]:
    result = await db.execute(
        select(RoomMember).where(
            RoomMember.room_id == room_id,
            RoomMember.username == username
        )
    )
    return result.scalar_one_or_none()


async def add_user_to_room(db: AsyncSession, room_id: str, username: str) -> RoomMember:
    """멤버 추가. 이미 멤버이면 기존 행을 그대로 반환 (joined_at 유지)"""
    existing = await find_room_member(db, room_id, username)
    if existing:
        return existing

    member = RoomMember(room_id=room_id, username=username, joined_at=utc_now())
    db.add(member)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return await find_room_member(db, room_id, username)

    await db.refresh(member)
    return member


async def remove_user_from_room(db: AsyncSession, room_id: str, username: str) -> bool:
    result = await db.execute(
        delete(RoomMember).where(
            RoomMember.room_id == room_id,
            RoomMember.username == username
        )
    )
    await db.commit()
    return result.rowcount > 0


async def is_user_in_room(db: AsyncSession, room_id: str, username: str) -> bool:
    return await find_room_member(db, room_id, username) is not None


async def get_room_members(db: AsyncSession, room_id: str) -> List[RoomMember]:
    """채팅방 멤버 목록, 입장 순"""
    result = await db.execute(
        select(RoomMember)
        .where(RoomMember.room_id == room_id)
        .order_by(RoomMember.joined_at, RoomMember.id)
    )
    return list(result.scalars().all())
