"""
User service layer for database operations.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from app.models.users import User
from app.utils.time_utils import utc_now


async def create_user(db: AsyncSession, email: str, username: str, password_hash: str) -> User:
    """사용자 생성"""
    user = User(
        email=email,
        username=username,
        password_hash=password_hash,
        status="Offline",
        created_at=utc_now(),
        last_seen=utc_now()
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)

    return user


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    """이메일로 사용자 조회"""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def find_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    """사용자명으로 사용자 조회"""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def update_user_status(db: AsyncSession, username: str, status: str) -> bool:
    """
    온라인 상태와 마지막 접속 시간 갱신.

    사용자가 없으면 False를 반환한다 (치명적이지 않음).
    """
    result = await db.execute(
        update(User)
        .where(User.username == username)
        .values(status=status, last_seen=utc_now())
    )
    await db.commit()
    return result.rowcount > 0


async def update_user_email(db: AsyncSession, username: str, email: str) -> Optional[User]:
    """이메일 변경. 사용자가 없으면 None"""
    user = await find_user_by_username(db, username)
    if not user:
        return None

    user.email = email
    await db.commit()
    await db.refresh(user)
    return user


async def update_user_password(db: AsyncSession, username: str, password_hash: str) -> bool:
    result = await db.execute(
        update(User)
        .where(User.username == username)
        .values(password_hash=password_hash)
    )
    await db.commit()
    return result.rowcount > 0
