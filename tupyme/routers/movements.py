from datetime import date, datetime, time
from dateutil.relativedelta import relativedelta
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from tupyme.dependencies import (
    get_movement_store,
    get_now,
    get_product_store,
    require_permission,
)
from tupyme.logging_conf import get_logger
from tupyme.models.movement import Movement
from tupyme.models.user import User
from tupyme.schemas.movement import (
    MovementResponse,
    MovementCreate,
    PaginatedMovementsResponse,
    MovimientoResumen,
)
from tupyme.services.movements import apply_movement, normalize_movement_type
from tupyme.services.stores import MovementStore, ProductStore
from tupyme.utils.permissions import (
    CREAR_AJUSTES,
    CREAR_MOVIMIENTOS,
    has_permission,
    role_label,
)
from tupyme.routers.websocket import manager
import anyio

logger = get_logger(__name__)

router = APIRouter(prefix="/movimientos", tags=["Movimientos"])


def to_response(
    movement: Movement,
    producto_nombre: Optional[str] = None,
    producto_sku: Optional[str] = None,
    nombre_usuario: Optional[str] = None,
) -> MovementResponse:
    return MovementResponse(
        **movement.model_dump(),
        producto_nombre=producto_nombre,
        producto_sku=producto_sku,
        nombre_usuario=nombre_usuario or "Desconocido",
    )


@router.get("/", response_model=PaginatedMovementsResponse)
def get_movements(
    store: MovementStore = Depends(get_movement_store),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    tipo: Optional[str] = Query(None),
    fecha_desde: Optional[date] = Query(None),
    fecha_hasta: Optional[date] = Query(None),
    product_id: Optional[int] = Query(None),
):
    """Lista los movimientos de la organización, del más reciente al más antiguo.
    - `fecha_hasta` incluye el día completo.
    """
    if tipo:
        tipo = normalize_movement_type(tipo)

    desde = datetime.combine(fecha_desde, time.min) if fecha_desde else None
    hasta = (
        datetime.combine(fecha_hasta, time.min) + relativedelta(days=1)
        if fecha_hasta
        else None
    )

    rows, total_records = store.list(
        limit=limit,
        offset=offset,
        search=search,
        tipo=tipo,
        fecha_desde=desde,
        fecha_hasta=hasta,
        product_id=product_id,
    )

    return {
        "data": [to_response(*row) for row in rows],
        "total": total_records,
        "limit": limit,
        "offset": offset,
    }


@router.get("/resumen/tipo", response_model=List[MovimientoResumen])
def contar_movimientos_por_tipo(store: MovementStore = Depends(get_movement_store)):
    conteo = store.count_by_type()
    return [
        {"tipo": "Entrada", "cantidad": conteo["entrada"]},
        {"tipo": "Salida", "cantidad": conteo["salida"]},
        {"tipo": "Ajuste", "cantidad": conteo["ajuste"]},
    ]


@router.get("/{id_mov}", response_model=MovementResponse)
def get_movement(id_mov: int, store: MovementStore = Depends(get_movement_store)):
    """Obtiene los detalles de un movimiento de la organización."""
    row = store.get(id_mov)
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Movimiento no encontrado"
        )
    return to_response(*row)


@router.post("/", response_model=MovementResponse, status_code=status.HTTP_201_CREATED)
def create_movement(
    movement_data: MovementCreate,
    products: ProductStore = Depends(get_product_store),
    store: MovementStore = Depends(get_movement_store),
    current_user: User = Depends(require_permission(CREAR_MOVIMIENTOS)),
    now: datetime = Depends(get_now),
):
    """
    Registra un movimiento de stock.

    - `entrada` suma y `salida` resta `cantidad`; una salida mayor que el stock se rechaza.
    - `ajuste` fija el stock en `cantidad` y exige `motivo`.
    - El movimiento guarda el rol del usuario en el momento de registrarlo.
    """
    organization_id = current_user.organization_id
    if movement_data.tipo == "ajuste" and not has_permission(
        current_user.rol, CREAR_AJUSTES
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No tienes permisos para registrar ajustes",
        )

    product = products.get(movement_data.product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado"
        )

    result = apply_movement(
        product,
        movement_data.tipo,
        movement_data.cantidad,
        movement_data.motivo,
        actor_id=current_user.id,
        actor_role=role_label(current_user.rol),
        now=now,
    )
    if not result.ok:
        logger.info(
            "Movimiento rechazado (producto %s, %s %s): %s",
            product.id,
            movement_data.tipo,
            movement_data.cantidad,
            result.error.message,
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=result.error.message
        )

    new_movement = store.append(result.movement, product)

    # Enviar mensaje a los clientes WebSocket conectados de la organización
    try:
        mensaje = (
            f"Nuevo movimiento registrado: {new_movement.id_mov} ({new_movement.tipo})"
        )

        # Función asíncrona que realizará el broadcast del mensaje
        async def emitir_websocket_mensaje(mensaje: str):
            await manager.broadcast(organization_id, mensaje)

        # Ruta síncrona: AnyIO ejecuta el broadcast en el event loop de FastAPI
        anyio.from_thread.run(emitir_websocket_mensaje, mensaje)

    except Exception as e:
        logger.warning("Error al emitir WebSocket: %s", e)

    return to_response(
        new_movement, product.nombre, product.sku, current_user.nombre
    )
