from .users import User
from .rooms import Room
from .room_members import RoomMember
from .messages import Message, PrivateMessage
from .friendships import Friendship

__all__ = [
    "User",
    "Room",
    "RoomMember",
    "Message",
    "PrivateMessage",
    "Friendship",
]
