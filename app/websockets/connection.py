import uuid
from typing import Any

from fastapi import WebSocket


class WebSocketConnection:
    """
    실시간 연결 핸들.

    레지스트리들은 이 객체의 동일성(identity)으로 연결을 구분한다.
    """

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.connection_id = uuid.uuid4().hex

    async def send_event(self, event: str, data: Any = None):
        """{"event": ..., "data": ...} 프레임 전송"""
        await self.websocket.send_json({"event": event, "data": data})

    def __repr__(self):
        return f"<WebSocketConnection(id={self.connection_id})>"
