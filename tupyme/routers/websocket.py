from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlmodel import Session
from typing import Dict, List
from tupyme.logging_conf import get_logger
from tupyme.models.database import get_db
from tupyme.routers.auth import user_from_token

logger = get_logger(__name__)

router = APIRouter()


class ConnectionManager:
    """Guarda las conexiones activas agrupadas por organización.
    Un mensaje solo llega a los clientes de la organización que lo origina."""

    def __init__(self):
        self.active_connections: Dict[int, List[WebSocket]] = {}

    async def connect(self, organization_id: int, websocket: WebSocket):
        await websocket.accept()  # .accept() es obligatorio para establecer la conexión con el cliente.
        self.active_connections.setdefault(organization_id, []).append(websocket)

    def disconnect(self, organization_id: int, websocket: WebSocket):
        conexiones = self.active_connections.get(organization_id, [])
        if websocket in conexiones:
            conexiones.remove(websocket)
        if not conexiones:
            self.active_connections.pop(organization_id, None)

    async def broadcast(self, organization_id: int, message: str):
        """Envía un mensaje de texto a todos los clientes de la organización."""
        for connection in list(self.active_connections.get(organization_id, [])):
            try:
                await connection.send_text(message)
            except (WebSocketDisconnect, RuntimeError):
                # Conexión cerrada sin pasar por disconnect()
                self.disconnect(organization_id, connection)


# Instanciamos para poder usarla en cualquier parte del código
manager = ConnectionManager()


@router.websocket("/ws/movimientos")
async def websocket_endpoint(
    websocket: WebSocket, token: str = "", db: Session = Depends(get_db)
):
    """El navegador no puede enviar cabeceras en un WebSocket: el token va en `?token=`."""
    try:
        organization_id = user_from_token(token, db).organization_id
    except HTTPException as e:
        logger.info("Conexión WebSocket rechazada: %s", e.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(organization_id, websocket)

    try:
        # Mantenemos la conexión activa y viva con un bucle infinito.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        # Cuando el cliente se desconecta, lo removemos para no dejar conexiones zombis.
        manager.disconnect(organization_id, websocket)
