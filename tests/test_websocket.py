import anyio
import pytest
from fastapi import WebSocketDisconnect

from tupyme.routers.websocket import ConnectionManager


class FakeWebSocket:
    def __init__(self, fail=False):
        self.accepted = False
        self.sent = []
        self.fail = fail

    async def accept(self):
        self.accepted = True

    async def send_text(self, message):
        if self.fail:
            raise RuntimeError("conexión cerrada")
        self.sent.append(message)


def test_broadcast_only_reaches_same_organization():
    manager = ConnectionManager()
    tienda_a, tienda_b, cerrada = FakeWebSocket(), FakeWebSocket(), FakeWebSocket(fail=True)

    async def scenario():
        await manager.connect(1, tienda_a)
        await manager.connect(1, cerrada)
        await manager.connect(2, tienda_b)
        await manager.broadcast(1, "Nuevo movimiento registrado: 1 (entrada)")

    anyio.run(scenario)

    assert tienda_a.accepted
    assert tienda_a.sent == ["Nuevo movimiento registrado: 1 (entrada)"]
    assert tienda_b.sent == []
    # Las conexiones que fallan se descartan
    assert manager.active_connections[1] == [tienda_a]

    manager.disconnect(1, tienda_a)
    assert 1 not in manager.active_connections


def test_websocket_rejects_missing_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/movimientos"):
            pass
    assert exc_info.value.code == 1008


def test_websocket_accepts_valid_token(client, admin_headers):
    token = admin_headers["Authorization"].split()[1]

    with client.websocket_connect(f"/ws/movimientos?token={token}") as websocket:
        websocket.send_text("ping")
