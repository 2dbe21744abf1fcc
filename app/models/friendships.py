from app.utils.time_utils import utc_now
from sqlalchemy import Column, Integer, DateTime, String, UniqueConstraint
from app.database.sql import Base


class Friendship(Base):
    """친구 관계. (user1, user2)는 항상 사전순으로 정렬되어 저장된다."""
    __tablename__ = "friendships"
    __table_args__ = (
        UniqueConstraint("user1", "user2", name="uq_friendships_pair"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user1 = Column(String(50), nullable=False, index=True)
    user2 = Column(String(50), nullable=False, index=True)
    status = Column(String(20), default="pending")  # pending, accepted, rejected
    requested_by = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=utc_now)
    responded_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Friendship(user1={self.user1}, user2={self.user2}, status={self.status})>"
