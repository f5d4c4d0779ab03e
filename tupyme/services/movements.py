"""
Aplicación de movimientos de stock (entrada, salida, ajuste).

`apply_movement` calcula el stock resultante, valida las invariantes y, si todo
es correcto, actualiza el stock del producto y construye el `Movement` que hay
que guardar. Si algo falla devuelve el error sin tocar el producto.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from tupyme.models.movement import Movement
from tupyme.services.errors import (
    FieldValidationError,
    InvariantViolation,
    InventoryError,
    MissingReasonError,
)

MOVEMENT_TYPES = ("entrada", "salida", "ajuste")

# Nombres del enum de la base de datos original
TYPE_ALIASES = {"in": "entrada", "out": "salida", "adjust": "ajuste"}

DEFAULT_REASONS = {
    "entrada": "Entrada de inventario",
    "salida": "Salida de inventario",
}


def normalize_movement_type(tipo: str) -> str:
    tipo = (tipo or "").strip().lower()
    return TYPE_ALIASES.get(tipo, tipo)


@dataclass
class MovementResult:
    ok: bool
    before: Optional[int] = None
    after: Optional[int] = None
    movement: Optional[Movement] = None
    error: Optional[InventoryError] = None


def _fail(error: InventoryError) -> MovementResult:
    return MovementResult(ok=False, error=error)


def apply_movement(
    product,
    tipo: str,
    cantidad: int,
    motivo: Optional[str] = None,
    *,
    actor_id: Optional[int] = None,
    actor_role: str = "Usuario",
    now: Optional[datetime] = None,
) -> MovementResult:
    """Aplica un movimiento al producto.

    - `entrada`: suma `cantidad`.
    - `salida`: resta `cantidad`; falla si el stock quedaría negativo.
    - `ajuste`: `cantidad` es el stock final; exige `motivo` y registra como
      cantidad la diferencia absoluta con el stock anterior.

    `actor_role` es la etiqueta del rol en este momento; queda guardada en el
    movimiento aunque el rol del usuario cambie después.
    """
    tipo = normalize_movement_type(tipo)
    if tipo not in MOVEMENT_TYPES:
        return _fail(
            FieldValidationError(f"Tipo de movimiento no válido: {tipo!r}", "tipo")
        )

    if isinstance(cantidad, bool) or not isinstance(cantidad, int) or cantidad < 0:
        return _fail(
            FieldValidationError(
                "La cantidad debe ser un entero mayor o igual a 0", "cantidad"
            )
        )

    motivo = (motivo or "").strip()
    if tipo == "ajuste" and not motivo:
        return _fail(
            MissingReasonError("El motivo es obligatorio para ajustes", "motivo")
        )

    before = product.stock or 0
    if tipo == "entrada":
        after = before + cantidad
        recorded = cantidad
    elif tipo == "salida":
        after = before - cantidad
        recorded = cantidad
    else:
        after = cantidad
        recorded = abs(cantidad - before)

    if after < 0:
        return _fail(
            InvariantViolation("El stock resultante no puede ser negativo", "cantidad")
        )

    product.stock = after
    movement = Movement(
        organization_id=getattr(product, "organization_id", None),
        product_id=product.id,
        fecha=now or datetime.now(),
        tipo=tipo,
        cantidad=recorded,
        stock_antes=before,
        stock_despues=after,
        motivo=motivo or DEFAULT_REASONS.get(tipo),
        id_usuario=actor_id,
        usuario_rol=actor_role,
    )
    return MovementResult(ok=True, before=before, after=after, movement=movement)
