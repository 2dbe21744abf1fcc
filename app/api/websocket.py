from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.websockets import WebSocketState

from app.core.logging import get_logger, set_connection_context, clear_connection_context
from app.schemas.events import EventFrame
from app.websockets.connection import WebSocketConnection
from app.websockets.connection_manager import ChatCoordinator

logger = get_logger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    실시간 채팅 WebSocket 엔드포인트

    프레임 형식: {"event": <이벤트 이름>, "data": <페이로드>} (양방향)
    인증은 연결 후 `authenticate` 이벤트로 한다.
    """
    coordinator: ChatCoordinator = websocket.app.state.coordinator

    await websocket.accept()
    connection = WebSocketConnection(websocket)
    gateway = coordinator.open_connection(connection)
    set_connection_context(connection.connection_id)
    logger.info(f"WebSocket connection opened: {connection.connection_id}")

    try:
        while not gateway.closed:
            raw = await websocket.receive_text()

            try:
                frame = EventFrame.model_validate_json(raw)
            except ValidationError:
                # JSON 파싱 오류 또는 event 필드 누락
                logger.warning(f"Malformed frame on connection {connection.connection_id}")
                await connection.send_event("error", {"message": "Invalid payload"})
                continue

            await gateway.handle_event(frame.event, frame.data)
            if gateway.identity:
                set_connection_context(connection.connection_id, gateway.identity)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection.connection_id}")

    finally:
        await gateway.disconnect()
        clear_connection_context()

    # 클라이언트가 disconnect 이벤트로 종료한 경우
    if websocket.client_state == WebSocketState.CONNECTED:
        await websocket.close()
