import asyncio
import base64
from datetime import datetime

import pytest
from fastapi import WebSocketDisconnect

from eventease.controller import ticket_sender
from eventease.controller.registration_controller import register_for_event_controller
from eventease.controller.ticket_controller import build_ticket_qr, get_ticket_controller
from eventease.controller.ws_manager import ConnectionManager
from eventease.errors import NotFound


class FakeWebSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, payload):
        if self.fail:
            raise WebSocketDisconnect()
        self.sent.append(payload)


def test_ticket_qr_is_base64_png():
    png = base64.b64decode(build_ticket_qr("TKT-1760870400000-9F2C01AB"))
    assert png.startswith(b"\x89PNG\r\n\x1a\n")


def test_ticket_bundles_registration_event_and_qr(db, make_event, participant):
    event = make_event(db, title="Ticketed")
    registration = asyncio.run(register_for_event_controller(db, event.id, participant))

    ticket = asyncio.run(get_ticket_controller(db, registration.ticket_id))

    assert ticket["ticket_id"] == registration.ticket_id
    assert ticket["registration"]["id"] == registration.id
    assert ticket["event"]["title"] == "Ticketed"
    assert ticket["qr_data"] == build_ticket_qr(registration.ticket_id)

    with pytest.raises(NotFound):
        asyncio.run(get_ticket_controller(db, "TKT-0-00000000"))


def test_ticket_email_is_skipped_when_mail_is_disabled(monkeypatch):
    monkeypatch.setattr(ticket_sender.constant_file, "send_emails", False)

    sent = asyncio.run(ticket_sender.send_ticket_email(
        email="ada@example.com",
        user_name="Ada",
        event_title="PyCon Nairobi",
        event_location="Nairobi, Kenya",
        start_date=datetime(2026, 11, 2, 9, 0),
        ticket_id="TKT-1760870400000-9F2C01AB",
        qr_data=build_ticket_qr("TKT-1760870400000-9F2C01AB"),
    ))
    assert sent is False


def test_broadcast_reaches_every_connection_and_drops_dead_ones():
    manager = ConnectionManager()
    alive, dead = FakeWebSocket(), FakeWebSocket(fail=True)

    async def scenario():
        await manager.connect(alive)
        await manager.connect(dead)
        await manager.broadcast({"event": "new_event", "data": {"start_date": datetime(2026, 11, 2, 9, 0)}})

    asyncio.run(scenario())

    assert alive.accepted
    assert alive.sent == [{"event": "new_event", "data": {"start_date": "2026-11-02T09:00:00"}}]
    assert manager.active_connections == [alive]


def test_new_registrations_are_broadcast(db, make_event, participant, monkeypatch):
    from eventease.controller import registration_controller

    listener = FakeWebSocket()
    manager = ConnectionManager()
    manager.active_connections.append(listener)
    monkeypatch.setattr(registration_controller, "registration_manager", manager)

    event = make_event(db)
    registration = asyncio.run(register_for_event_controller(db, event.id, participant))

    assert [message["event"] for message in listener.sent] == ["new_registration"]
    assert listener.sent[0]["data"]["ticket_id"] == registration.ticket_id
