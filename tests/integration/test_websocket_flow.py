import uuid

from fastapi import status
from fastapi.testclient import TestClient

from app.main import app


def register_and_login(client: TestClient, username: str) -> str:
    """회원가입 후 로그인하여 세션 토큰 반환"""
    password = "secret123"
    email = f"{username}@example.com"

    response = client.post("/register", json={"username": username, "email": email, "password": password})
    assert response.status_code == status.HTTP_201_CREATED

    response = client.post("/login", json={"email": email, "password": password})
    assert response.status_code == status.HTTP_200_OK
    return response.json()["session_id"]


def unique_name(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


class TestWebSocketChatFlow:
    """HTTP + WebSocket 전체 채팅 플로우 통합 테스트"""

    def test_room_and_private_chat_flow(self):
        """
        1. 두 사용자 가입/로그인
        2. A가 채팅방 생성, B가 초대 코드로 참여
        3. A, B 친구 맺기
        4. WebSocket 인증 후 방 입장
        5. 방 메시지와 1:1 메시지 주고받기
        6. 연결 종료 알림
        """
        with TestClient(app) as client:
            alice = unique_name("alice")
            bob = unique_name("bob")
            alice_token = register_and_login(client, alice)
            bob_token = register_and_login(client, bob)
            alice_headers = {"X-Session-Id": alice_token}
            bob_headers = {"X-Session-Id": bob_token}

            response = client.post("/create-room", json={"name": "Lobby", "username": alice}, headers=alice_headers)
            assert response.status_code == status.HTTP_201_CREATED
            room_id = response.json()["room_id"]
            invite_code = response.json()["invite_code"]

            response = client.post(
                "/join-room", json={"invite_code": invite_code, "username": bob}, headers=bob_headers
            )
            assert response.status_code == status.HTTP_200_OK

            client.post("/send-friend-request", json={"from_user": alice, "to_user": bob}, headers=alice_headers)
            response = client.post(
                "/respond-friend-request",
                json={"username": bob, "friend_username": alice, "accept": True},
                headers=bob_headers
            )
            assert response.status_code == status.HTTP_200_OK

            with client.websocket_connect("/ws") as ws_alice, client.websocket_connect("/ws") as ws_bob:
                ws_alice.send_json({"event": "authenticate", "data": {"username": alice, "sessionId": alice_token}})
                ws_alice.send_json({
                    "event": "join room",
                    "data": {"roomId": room_id, "username": alice, "sessionId": alice_token}
                })
                assert ws_alice.receive_json() == {"event": "load messages", "data": []}
                members = ws_alice.receive_json()
                assert members["event"] == "room members"
                assert {m["username"] for m in members["data"]} == {alice, bob}
                room_info = ws_alice.receive_json()
                assert room_info["event"] == "room info"
                assert room_info["data"]["invite_code"] == invite_code

                ws_bob.send_json({"event": "authenticate", "data": {"username": bob, "sessionId": bob_token}})
                ws_bob.send_json({
                    "event": "join room",
                    "data": {"roomId": room_id, "username": bob, "sessionId": bob_token}
                })
                assert ws_bob.receive_json()["event"] == "load messages"
                assert ws_bob.receive_json()["event"] == "room members"
                assert ws_bob.receive_json()["event"] == "room info"
                assert ws_alice.receive_json()["event"] == "room members"

                ws_bob.send_json({"event": "chat message", "data": {"text": "hello"}})
                for ws in (ws_alice, ws_bob):
                    frame = ws.receive_json()
                    assert frame["event"] == "chat message"
                    assert frame["data"]["text"] == "hello"
                    assert frame["data"]["sender"] == bob
                    assert frame["data"]["room_id"] == room_id

                ws_alice.send_json({
                    "event": "private message",
                    "data": {"sender": alice, "receiver": bob, "text": "psst"}
                })
                received = ws_bob.receive_json()
                assert received["event"] == "private message"
                assert received["data"]["text"] == "psst"
                echo = ws_alice.receive_json()
                assert echo["event"] == "private message"
                assert echo["data"]["receiver"] == bob

                ws_bob.send_json({"event": "mark_as_read", "data": {"sender": alice}})
                assert ws_bob.receive_json() == {"event": "unread_cleared", "data": {"sender": alice, "count": 1}}

                ws_bob.send_json({"event": "disconnect"})
                assert ws_alice.receive_json()["event"] == "room members"
                assert ws_alice.receive_json() == {
                    "event": "user_disconnected",
                    "data": {"username": bob, "roomId": room_id}
                }

            response = client.get(f"/private-messages/{alice}/{bob}", headers=alice_headers)
            assert [m["text"] for m in response.json()["messages"]] == ["psst"]

    def test_unauthenticated_event_gets_session_expired(self):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"event": "chat message", "data": {"text": "hello"}})
                assert ws.receive_json() == {"event": "session_expired", "data": None}

                ws.send_text("not json")
                assert ws.receive_json() == {"event": "error", "data": {"message": "Invalid payload"}}

                ws.send_json({"event": "dance", "data": {}})
                assert ws.receive_json() == {"event": "error", "data": {"message": "Unknown event: dance"}}
