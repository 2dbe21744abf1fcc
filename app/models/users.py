from app.utils.time_utils import utc_now
from sqlalchemy import Column, Integer, String, DateTime
from app.database.sql import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    status = Column(String(20), default="Offline")  # Online, Offline (advisory)
    last_seen = Column(DateTime, default=utc_now)
    created_at = Column(DateTime, default=utc_now)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, username={self.username})>"
