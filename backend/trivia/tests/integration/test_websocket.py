"""Integration tests for the WebSocket and HTTP endpoints.

These exercise the transport layer (HTTP routes, WebSocket loop, MessagePack
framing) through the Starlette test client on top of a real SessionManager.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from trivia.logic.enums import SessionErrorCode
from trivia.messaging.types import SessionMessageType
from trivia.server import websocket as ws_module
from trivia.server.app import create_app
from trivia.server.settings import TriviaServerSettings
from trivia.session.manager import SessionManager
from trivia.tests.helpers.websocket import recv_until, recv_ws, send_ws, wait_until


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


class TestWebSocketIntegration:
    def test_create_session(self, client):
        with client.websocket_connect("/ws") as ws:
            send_ws(ws, {"type": "create_session", "name": "Alice", "sessionId": "room1"})

            created = recv_ws(ws)
            assert created["type"] == SessionMessageType.SESSION_CREATED
            assert created["sessionId"] == "room1"

            system = recv_ws(ws)
            assert system == {"type": "system_message", "text": "Alice created the session and is the Game Master."}

            state = recv_ws(ws)
            assert state["type"] == SessionMessageType.SESSION_STATE
            assert state["gm"] == created["gm"]
            assert state["players"][0]["isGM"] is True

    def test_full_round_between_two_clients(self, client):
        with client.websocket_connect("/ws") as alice, client.websocket_connect("/ws") as bob:
            send_ws(alice, {"type": "create_session", "name": "Alice", "sessionId": "room1"})
            recv_until(alice, SessionMessageType.SESSION_STATE)

            send_ws(bob, {"type": "join_session", "sessionId": "room1", "name": "Bob"})
            joined = recv_until(bob, SessionMessageType.SESSION_STATE)
            assert {"type": "system_message", "text": "Bob joined the session."} in joined
            recv_until(alice, SessionMessageType.SESSION_STATE)

            send_ws(alice, {"type": "set_question", "question": "Capital of France?", "answer": "Paris"})
            recv_until(alice, SessionMessageType.SESSION_STATE)
            recv_until(bob, SessionMessageType.SESSION_STATE)

            send_ws(alice, {"type": "start_game"})
            started = recv_until(bob, SessionMessageType.GAME_STARTED)[-1]
            assert started["question"] == "Capital of France?"
            assert started["duration"] == 60

            send_ws(bob, {"type": "guess", "guessText": "paris"})
            ended = recv_until(bob, SessionMessageType.GAME_ENDED)[-1]
            assert ended["reason"] == "correct_guess"
            assert ended["winner"]["name"] == "Bob"
            assert ended["answer"] == "Paris"

            state = recv_ws(bob)
            assert state["type"] == SessionMessageType.SESSION_STATE
            assert state["gm"] == ended["winner"]["id"]
            scores = {p["name"]: p["score"] for p in state["players"]}
            assert scores == {"Alice": 0, "Bob": 10}

    def test_join_unknown_session_returns_error(self, client):
        with client.websocket_connect("/ws") as ws:
            send_ws(ws, {"type": "join_session", "sessionId": "missing", "name": "Bob"})

            error = recv_ws(ws)
            assert error == {"type": "error_message", "code": "session_not_found", "text": "Session not found."}

    def test_invalid_message_keeps_connection(self, client):
        with client.websocket_connect("/ws") as ws:
            send_ws(ws, {"type": "definitely_not_an_intent"})
            error = recv_ws(ws)
            assert error["code"] == SessionErrorCode.INVALID_MESSAGE

            send_ws(ws, {"type": "ping"})
            assert recv_ws(ws) == {"type": "pong"}

    def test_invalid_msgpack_returns_error(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_bytes(b"\xff\xff\xff")

            error = recv_ws(ws)
            assert error["type"] == SessionMessageType.ERROR_MESSAGE
            assert error["code"] == SessionErrorCode.INVALID_MESSAGE

    def test_text_frame_is_rejected_as_undecodable(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("hello")

            error = recv_ws(ws)
            assert error["code"] == SessionErrorCode.INVALID_MESSAGE

    def test_repeated_decode_errors_disconnect(self, client):
        with client.websocket_connect("/ws") as ws:
            for _ in range(5):
                ws.send_bytes(b"\xff\xff\xff")
                recv_ws(ws)  # drain INVALID_MESSAGE error
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_bytes()
            assert exc_info.value.code == 4004

    def test_decode_error_counter_resets_on_valid_message(self, client):
        with patch.object(ws_module, "_MAX_DECODE_ERRORS", 3), client.websocket_connect("/ws") as ws:
            for _ in range(2):
                ws.send_bytes(b"\xff\xff\xff")
                recv_ws(ws)

            send_ws(ws, {"type": "ping"})
            assert recv_ws(ws)["type"] == SessionMessageType.PONG

            for _ in range(2):
                ws.send_bytes(b"\xff\xff\xff")
                recv_ws(ws)

            # still connected
            send_ws(ws, {"type": "ping"})
            assert recv_ws(ws)["type"] == SessionMessageType.PONG

    def test_disconnect_removes_player(self, client, session_manager):
        with client.websocket_connect("/ws") as alice:
            send_ws(alice, {"type": "create_session", "name": "Alice", "sessionId": "room1"})
            recv_until(alice, SessionMessageType.SESSION_STATE)

            with client.websocket_connect("/ws") as bob:
                send_ws(bob, {"type": "join_session", "sessionId": "room1", "name": "Bob"})
                recv_until(bob, SessionMessageType.SESSION_STATE)
                recv_until(alice, SessionMessageType.SESSION_STATE)

            left = recv_ws(alice)
            assert left == {"type": "system_message", "text": "Bob left the session."}
            state = recv_ws(alice)
            assert state["type"] == SessionMessageType.SESSION_STATE
            assert [p["name"] for p in state["players"]] == ["Alice"]

        wait_until(lambda: session_manager.session_count == 0)

    def test_gm_disconnect_mid_round_ends_round(self, client, session_manager):
        with client.websocket_connect("/ws") as bob:
            with client.websocket_connect("/ws") as alice:
                send_ws(alice, {"type": "create_session", "name": "Alice", "sessionId": "room1"})
                recv_until(alice, SessionMessageType.SESSION_STATE)
                send_ws(bob, {"type": "join_session", "sessionId": "room1", "name": "Bob"})
                recv_until(bob, SessionMessageType.SESSION_STATE)
                send_ws(alice, {"type": "set_question", "question": "Capital of France?", "answer": "Paris"})
                recv_until(alice, SessionMessageType.SESSION_STATE)
                send_ws(alice, {"type": "start_game"})
                recv_until(alice, SessionMessageType.GAME_STARTED)
                recv_until(bob, SessionMessageType.GAME_STARTED)

            messages = recv_until(bob, SessionMessageType.GAME_ENDED)
            texts = [m["text"] for m in messages if m["type"] == SessionMessageType.SYSTEM_MESSAGE]
            assert texts[-2:] == ["Alice left the session.", "Bob is now the Game Master."]
            assert messages[-1] == {
                "type": "game_ended",
                "reason": "stopped_not_enough_players",
                "winner": None,
                "answer": "Paris",
            }

            state = recv_ws(bob)
            assert state["type"] == SessionMessageType.SESSION_STATE
            assert state["gm"] == state["players"][0]["id"]
            assert [p["name"] for p in state["players"]] == ["Bob"]
            assert state["inProgress"] is False

            session = session_manager.get_session("room1")
            assert session is not None
            assert not session.in_progress
            assert session.deadline is None


class TestPingEndpoint:
    def test_ping_returns_ok_and_time(self, client):
        response = client.get("/ping")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert datetime.fromisoformat(body["time"]).tzinfo is not None


class TestStatusEndpoint:
    def test_status_counts_sessions(self, client):
        assert client.get("/status").json() == {"status": "ok", "active_sessions": 0, "max_sessions": 100}

        with client.websocket_connect("/ws") as ws:
            send_ws(ws, {"type": "create_session", "name": "Alice"})
            recv_until(ws, SessionMessageType.SESSION_STATE)

            assert client.get("/status").json()["active_sessions"] == 1


class TestStaticFiles:
    def test_serves_index_when_directory_exists(self, tmp_path):
        (tmp_path / "index.html").write_text("<h1>Trivia</h1>")
        settings = TriviaServerSettings(static_dir=str(tmp_path))
        app = create_app(settings=settings, session_manager=SessionManager())

        with TestClient(app) as client:
            response = client.get("/")

        assert response.status_code == 200
        assert "Trivia" in response.text

    def test_api_routes_take_precedence(self, tmp_path):
        (tmp_path / "index.html").write_text("<h1>Trivia</h1>")
        app = create_app(settings=TriviaServerSettings(static_dir=str(tmp_path)), session_manager=SessionManager())

        with TestClient(app) as client:
            assert client.get("/ping").json()["status"] == "ok"

    def test_missing_directory_serves_api_only(self, client):
        assert client.get("/").status_code == 404


class TestCors:
    def test_allowed_origin_is_echoed(self, client):
        response = client.get("/ping", headers={"Origin": "http://localhost:3000"})

        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_unknown_origin_gets_no_header(self, client):
        response = client.get("/ping", headers={"Origin": "http://evil.example"})

        assert "access-control-allow-origin" not in response.headers
