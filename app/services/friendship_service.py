from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from sqlalchemy.exc import IntegrityError

from app.models.friendships import Friendship
from app.utils.time_utils import utc_now


def sorted_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    """요청 방향과 무관하게 같은 행을 가리키도록 사전순 정렬"""
    first, second = sorted((user_a, user_b))
    return first, second


class FriendshipService:
    """친구 관계 관리 서비스"""

    @staticmethod
    async def find_friendship(
        db: AsyncSession,
        user_a: str,
        user_b: str
    ) -> Optional[Friendship]:
        """
        두 사용자 간의 친구 관계를 찾습니다 (정렬된 쌍 기준).

        Args:
            db: 데이터베이스 세션
            user_a: 첫 번째 사용자명
            user_b: 두 번째 사용자명

        Returns:
            Optional[Friendship]: 친구 관계 또는 None
        """
        user1, user2 = sorted_pair(user_a, user_b)
        result = await db.execute(
            select(Friendship).where(
                Friendship.user1 == user1,
                Friendship.user2 == user2
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def send_friend_request(
        db: AsyncSession,
        from_user: str,
        to_user: str
    ) -> Friendship:
        """
        친구 요청을 전송합니다.

        같은 쌍의 행이 이미 있으면 새 행을 만들지 않습니다. 거절된 요청만 다시
        pending 상태로 되돌립니다.

        Args:
            db: 데이터베이스 세션
            from_user: 요청자
            to_user: 대상자

        Returns:
            Friendship: 해당 쌍의 친구 관계 행
        """
        existing = await FriendshipService.find_friendship(db, from_user, to_user)
        if existing:
            if existing.status == "rejected":
                existing.status = "pending"
                existing.requested_by = from_user
                existing.created_at = utc_now()
                existing.responded_at = None
                await db.commit()
                await db.refresh(existing)
            return existing

        user1, user2 = sorted_pair(from_user, to_user)
        friendship = Friendship(
            user1=user1,
            user2=user2,
            status="pending",
            requested_by=from_user,
            created_at=utc_now()
        )

        db.add(friendship)
        try:
            await db.commit()
        except IntegrityError:
            # 동시에 반대 방향 요청이 먼저 들어온 경우
            await db.rollback()
            return await FriendshipService.find_friendship(db, from_user, to_user)

        await db.refresh(friendship)
        return friendship

    @staticmethod
    async def respond_to_friend_request(
        db: AsyncSession,
        username: str,
        friend_username: str,
        accept: bool
    ) -> bool:
        """
        받은 친구 요청을 수락하거나 거절합니다.

        Args:
            db: 데이터베이스 세션
            username: 요청을 받은 사용자
            friend_username: 요청을 보낸 사용자
            accept: 수락 여부

        Returns:
            bool: 대기 중인 요청이 갱신되었는지 여부
        """
        friendship = await FriendshipService.find_friendship(db, username, friend_username)
        if not friendship or friendship.status != "pending":
            return False

        # 요청 받은 사용자만 응답 가능
        if friendship.requested_by == username:
            return False

        friendship.status = "accepted" if accept else "rejected"
        friendship.responded_at = utc_now()
        await db.commit()

        return True

    @staticmethod
    async def get_friends(db: AsyncSession, username: str) -> List[Tuple[str, object]]:
        """수락된 친구 목록: (상대 사용자명, 관계 생성일시)"""
        return await FriendshipService._list_counterparts(db, username, "accepted")

    @staticmethod
    async def get_pending_requests(db: AsyncSession, username: str) -> List[Tuple[str, object]]:
        """받은 친구 요청 목록: (요청자, 요청일시)"""
        pairs = await FriendshipService._list_counterparts(
            db, username, "pending", received_only=True
        )
        return pairs

    @staticmethod
    async def _list_counterparts(
        db: AsyncSession,
        username: str,
        status: str,
        received_only: bool = False
    ) -> List[Tuple[str, object]]:
        conditions = [
            Friendship.status == status,
            or_(Friendship.user1 == username, Friendship.user2 == username)
        ]
        if received_only:
            conditions.append(Friendship.requested_by != username)

        result = await db.execute(
            select(Friendship).where(*conditions).order_by(Friendship.created_at.desc())
        )

        counterparts = []
        for friendship in result.scalars().all():
            other = friendship.user2 if friendship.user1 == username else friendship.user1
            counterparts.append((other, friendship.created_at))
        return counterparts

    @staticmethod
    async def are_friends(db: AsyncSession, user_a: str, user_b: str) -> bool:
        """두 사용자가 친구(accepted)인지 확인합니다."""
        friendship = await FriendshipService.find_friendship(db, user_a, user_b)
        return friendship is not None and friendship.status == "accepted"

    @staticmethod
    async def has_pending_request(db: AsyncSession, user_a: str, user_b: str) -> bool:
        friendship = await FriendshipService.find_friendship(db, user_a, user_b)
        return friendship is not None and friendship.status == "pending"

    @staticmethod
    async def remove_friend(db: AsyncSession, user_a: str, user_b: str) -> bool:
        user1, user2 = sorted_pair(user_a, user_b)
        result = await db.execute(
            delete(Friendship).where(
                Friendship.user1 == user1,
                Friendship.user2 == user2
            )
        )
        await db.commit()
        return result.rowcount > 0
