from app.utils.time_utils import utc_now
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Index
from app.database.sql import Base


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_room_time", "room_id", "time"),  # For room backlog by time
    )

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    sender = Column(String(50), nullable=False)
    room_id = Column(String(64), nullable=False)
    time = Column(DateTime, default=utc_now, nullable=False)

    def __repr__(self):
        return f"<Message(id={self.id}, sender={self.sender}, room_id={self.room_id})>"


class PrivateMessage(Base):
    __tablename__ = "private_messages"
    __table_args__ = (
        Index("ix_private_messages_pair_time", "sender", "receiver", "time"),
    )

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    sender = Column(String(50), nullable=False)
    receiver = Column(String(50), nullable=False, index=True)
    time = Column(DateTime, default=utc_now, nullable=False)
    read = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<PrivateMessage(id={self.id}, sender={self.sender}, receiver={self.receiver})>"
