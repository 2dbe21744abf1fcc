"""
Message service layer for database operations.

Handles room messages and private (1:1) messages.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, or_, and_

from app.models.messages import Message, PrivateMessage
from app.utils.time_utils import utc_now

DEFAULT_BACKLOG_LIMIT = 100


# =============================================================================
# Room Messages
# =============================================================================

async def create_message(
    db: AsyncSession,
    text: str,
    sender: str,
    room_id: str,
    time: Optional[datetime] = None
) -> Message:
    """채팅방 메시지 저장"""
    message = Message(
        text=text,
        sender=sender,
        room_id=room_id,
        time=time or utc_now()
    )

    db.add(message)
    await db.commit()
    await db.refresh(message)

    return message


async def get_room_messages(
    db: AsyncSession,
    room_id: str,
    since: Optional[datetime] = None,
    limit: int = DEFAULT_BACKLOG_LIMIT
) -> List[Message]:
    """
    채팅방 메시지 목록 조회 (오래된 것부터).

    since가 주어지면 그 이후(time > since)에 작성된 메시지만 반환한다.
    """
    conditions = [Message.room_id == room_id]
    if since is not None:
        conditions.append(Message.time > since)

    query = select(Message).where(*conditions).order_by(
        Message.time.asc(), Message.id.asc()
    ).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


# =============================================================================
# Private Messages
# =============================================================================

async def create_private_message(
    db: AsyncSession,
    text: str,
    sender: str,
    receiver: str,
    time: Optional[datetime] = None
) -> PrivateMessage:
    """1:1 메시지 저장"""
    message = PrivateMessage(
        text=text,
        sender=sender,
        receiver=receiver,
        time=time or utc_now(),
        read=False
    )

    db.add(message)
    await db.commit()
    await db.refresh(message)

    return message


def _between(user1: str, user2: str):
    return or_(
        and_(PrivateMessage.sender == user1, PrivateMessage.receiver == user2),
        and_(PrivateMessage.sender == user2, PrivateMessage.receiver == user1)
    )


async def get_private_messages(db: AsyncSession, user1: str, user2: str) -> List[PrivateMessage]:
    """두 사용자 간 1:1 메시지 (양방향, 오래된 것부터)"""
    query = select(PrivateMessage).where(_between(user1, user2)).order_by(
        PrivateMessage.time.asc(), PrivateMessage.id.asc()
    )

    result = await db.execute(query)
    return list(result.scalars().all())


async def mark_private_messages_read(db: AsyncSession, receiver: str, sender: str) -> int:
    """sender가 receiver에게 보낸 읽지 않은 메시지를 읽음 처리"""
    result = await db.execute(
        update(PrivateMessage)
        .where(
            PrivateMessage.receiver == receiver,
            PrivateMessage.sender == sender,
            PrivateMessage.read.is_(False)
        )
        .values(read=True)
    )
    await db.commit()
    return result.rowcount


# =============================================================================
# History maintenance / stats
# =============================================================================

async def delete_room_messages(db: AsyncSession, room_id: str) -> int:
    """채팅방 메시지 전체 삭제, 삭제한 개수 반환"""
    result = await db.execute(delete(Message).where(Message.room_id == room_id))
    await db.commit()
    return result.rowcount


async def delete_private_messages(db: AsyncSession, user1: str, user2: str) -> int:
    """두 사용자 간 1:1 메시지 전체 삭제 (양방향)"""
    result = await db.execute(delete(PrivateMessage).where(_between(user1, user2)))
    await db.commit()
    return result.rowcount


async def count_sent_messages(db: AsyncSession, username: str) -> int:
    """사용자가 보낸 채팅방 메시지 + 1:1 메시지 수"""
    room_count = await db.scalar(
        select(func.count()).select_from(Message).where(Message.sender == username)
    )
    private_count = await db.scalar(
        select(func.count()).select_from(PrivateMessage).where(PrivateMessage.sender == username)
    )
    return (room_count or 0) + (private_count or 0)
