"""
End-to-end tests over the /ws push channel using the FastAPI test client.
"""

import json

from gateway import encode_frame, resolve_origin_address
from schemas.events import OutboundEvent
from services.engine import CONNECTED_MESSAGE, PARTNER_LEFT_MESSAGE, SEARCHING_MESSAGE
from tests.conftest import ADMIN_SECRET


class TestOriginAddress:
    def test_first_forwarded_for_entry_wins(self):
        headers = {"x-forwarded-for": "203.0.113.5, 10.0.0.1", "x-real-ip": "10.0.0.2"}
        assert resolve_origin_address(headers, "10.0.0.3") == "203.0.113.5"

    def test_real_ip_fallback(self):
        assert resolve_origin_address({"x-real-ip": "203.0.113.9"}, "10.0.0.3") == "203.0.113.9"

    def test_peer_host_fallback_strips_ipv4_mapping(self):
        assert resolve_origin_address({}, "::ffff:192.0.2.10") == "192.0.2.10"

    def test_unknown_when_nothing_available(self):
        assert resolve_origin_address({}, None) == "Unknown IP"


def test_encode_frame():
    frame = json.loads(encode_frame(OutboundEvent.UPDATE_ONLINE_COUNT, 3))
    assert frame == {"event": "updateOnlineCount", "data": 3}


def send(ws, event, data=None):
    ws.send_text(json.dumps({"event": event, "data": data}))


def test_two_participants_chat_and_part(client, app):
    engine = app.state.engine
    with client.websocket_connect("/ws", headers={"x-forwarded-for": "203.0.113.5"}) as alice:
        assert alice.receive_json() == {"event": "updateOnlineCount", "data": 1}
        assert alice.receive_json()["data"]["message"] == SEARCHING_MESSAGE

        with client.websocket_connect("/ws") as bob:
            assert bob.receive_json() == {"event": "updateOnlineCount", "data": 2}
            assert bob.receive_json()["data"] == {"message": CONNECTED_MESSAGE, "connected": True, "clear": True}
            assert alice.receive_json() == {"event": "updateOnlineCount", "data": 2}
            assert alice.receive_json()["data"]["connected"] is True

            send(alice, "typing", True)
            assert bob.receive_json() == {"event": "typing", "data": True}

            send(alice, "sendMessage", "   ")
            send(alice, "sendMessage", "hi")
            assert bob.receive_json() == {"event": "receiveMessage", "data": "hi"}
            assert engine.counter.total == 1

        status = alice.receive_json()
        assert status["event"] == "status"
        assert status["data"] == {"message": PARTNER_LEFT_MESSAGE, "connected": False, "clear": True}
        assert alice.receive_json() == {"event": "updateOnlineCount", "data": 1}

        participant = engine.registry.all()[0]
        assert participant.origin_address == "203.0.113.5"
        assert engine.matchmaker.waiting_slot_id == participant.id

    assert engine.registry.count() == 0
    assert engine.matchmaker.waiting_slot_id is None


def test_malformed_frames_are_ignored(client, app):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.receive_json()

        ws.send_text("garbage")
        send(ws, "sendMessage", 42)
        send(ws, "unknownEvent", "x")
        send(ws, "adminRefresh")
        # Connection is still usable afterwards
        send(ws, "adminAuth", ADMIN_SECRET)
        assert ws.receive_json() == {"event": "adminAuthSuccess", "data": None}
        assert ws.receive_json()["event"] == "adminData"


def test_admin_observer_receives_updates(client, app):
    with client.websocket_connect("/ws") as admin:
        admin.receive_json()
        admin.receive_json()
        send(admin, "adminAuth", "wrong")
        send(admin, "adminAuth", ADMIN_SECRET)
        assert admin.receive_json()["event"] == "adminAuthSuccess"
        snapshot = admin.receive_json()["data"]
        assert snapshot["stats"]["totalOnline"] == 1

        send(admin, "adminRefresh")
        assert admin.receive_json()["event"] == "adminData"

        with client.websocket_connect("/ws") as visitor:
            visitor.receive_json()
            assert visitor.receive_json()["data"]["connected"] is True

            assert admin.receive_json() == {"event": "updateOnlineCount", "data": 2}
            assert admin.receive_json()["event"] == "status"
            update = admin.receive_json()
            assert update["event"] == "adminData"
            assert update["data"]["stats"]["totalOnline"] == 2
            assert update["data"]["stats"]["totalRooms"] == 1
