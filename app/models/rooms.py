from app.utils.time_utils import utc_now
from sqlalchemy import Column, String, DateTime
from app.database.sql import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(64), primary_key=True)  # room_<epoch ms>_<random>
    name = Column(String(100), nullable=False)
    created_by = Column(String(50), nullable=False)
    invite_code = Column(String(16), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utc_now)

    def __repr__(self):
        return f"<Room(id={self.id}, name={self.name}, invite_code={self.invite_code})>"
