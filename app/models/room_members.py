from app.utils.time_utils import utc_now
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from app.database.sql import Base


class RoomMember(Base):
    """채팅방 입장 권한 (영속). 실시간 연결 추적과는 별개"""
    __tablename__ = "room_members"
    __table_args__ = (
        UniqueConstraint("room_id", "username", name="uq_room_members_room_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(String(64), nullable=False, index=True)
    username = Column(String(50), nullable=False, index=True)
    joined_at = Column(DateTime, default=utc_now)

    def __repr__(self):
        return f"<RoomMember(room_id={self.room_id}, username={self.username})>"
