from datetime import datetime

from tupyme.services.errors import (
    FieldValidationError,
    InvariantViolation,
    MissingReasonError,
)
from tupyme.services.movements import apply_movement
from tupyme.services.stock_status import EN_STOCK, POCO_STOCK, classify_product

from conftest import make_product

NOW = datetime(2024, 6, 15, 9, 0)


def test_entrada_adds_quantity_and_builds_movement():
    product = make_product(id=7, stock=5)
    result = apply_movement(
        product, "entrada", 10, actor_id=3, actor_role="Almacén", now=NOW
    )

    assert result.ok
    assert (result.before, result.after) == (5, 15)
    assert product.stock == 15
    movement = result.movement
    assert movement.product_id == 7
    assert movement.tipo == "entrada"
    assert movement.cantidad == 10
    assert (movement.stock_antes, movement.stock_despues) == (5, 15)
    assert movement.motivo == "Entrada de inventario"
    assert movement.usuario_rol == "Almacén"
    assert movement.id_usuario == 3
    assert movement.fecha == NOW


def test_salida_above_stock_is_rejected_without_mutation():
    product = make_product(stock=3)
    result = apply_movement(product, "salida", 4)

    assert not result.ok
    assert isinstance(result.error, InvariantViolation)
    assert "stock resultante no puede ser negativo" in result.error.message
    assert result.movement is None
    assert product.stock == 3


def test_salida_to_zero_is_allowed():
    product = make_product(stock=3)
    result = apply_movement(product, "salida", 3, "Venta")

    assert result.ok
    assert product.stock == 0
    assert result.movement.motivo == "Venta"


def test_zero_quantity_entrada_and_salida_are_accepted():
    product = make_product(stock=8)
    assert apply_movement(product, "entrada", 0).ok
    assert apply_movement(product, "salida", 0).ok
    assert product.stock == 8


def test_ajuste_sets_target_and_records_difference():
    product = make_product(stock=12)
    result = apply_movement(product, "ajuste", 7, "Conteo físico")

    assert result.ok
    assert product.stock == 7
    assert result.movement.cantidad == 5
    assert (result.movement.stock_antes, result.movement.stock_despues) == (12, 7)
    assert result.movement.motivo == "Conteo físico"


def test_ajuste_requires_reason():
    product = make_product(stock=12)
    for motivo in (None, "", "   "):
        result = apply_movement(product, "ajuste", 7, motivo)
        assert not result.ok
        assert isinstance(result.error, MissingReasonError)
    assert product.stock == 12


def test_invalid_quantities_are_rejected():
    product = make_product(stock=12)
    for cantidad in (-1, 2.5, True, "3"):
        result = apply_movement(product, "entrada", cantidad)
        assert not result.ok
        assert isinstance(result.error, FieldValidationError)
    assert product.stock == 12


def test_type_aliases_and_unknown_type():
    product = make_product(stock=2)
    assert apply_movement(product, "in", 1).movement.tipo == "entrada"
    assert apply_movement(product, "OUT", 1).movement.tipo == "salida"

    result = apply_movement(product, "traspaso", 1)
    assert not result.ok
    assert result.error.field == "tipo"


def test_low_stock_product_recovers_after_entrada():
    product = make_product(stock=5)
    assert classify_product(product) == POCO_STOCK

    assert apply_movement(product, "entrada", 10).ok
    assert product.stock == 15
    assert classify_product(product) == EN_STOCK
