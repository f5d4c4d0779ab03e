from datetime import datetime

import pytest

from tupyme.models.movement import Movement
from tupyme.services.alerts import generate_alerts
from tupyme.services.reports import (
    dashboard_stats,
    inventory_snapshot,
    movement_report,
    period_range,
)

from conftest import make_product

# Sábado
NOW = datetime(2024, 6, 15, 10, 30)


def movement(product_id, tipo, cantidad, fecha=NOW) -> Movement:
    return Movement(
        organization_id=1,
        product_id=product_id,
        tipo=tipo,
        cantidad=cantidad,
        stock_antes=0,
        stock_despues=0,
        fecha=fecha,
        usuario_rol="Administrador",
    )


def test_period_ranges():
    assert period_range("hoy", NOW) == (datetime(2024, 6, 15), datetime(2024, 6, 16))
    assert period_range("ayer", NOW) == (datetime(2024, 6, 14), datetime(2024, 6, 15))
    # La semana empieza el lunes
    assert period_range("semana", NOW) == (datetime(2024, 6, 10), datetime(2024, 6, 17))
    assert period_range("mes", NOW) == (datetime(2024, 6, 1), datetime(2024, 7, 1))
    with pytest.raises(ValueError):
        period_range("anio", NOW)


def test_week_range_on_monday():
    lunes = datetime(2024, 6, 10, 8, 0)
    assert period_range("semana", lunes)[0] == datetime(2024, 6, 10)


def test_inventory_snapshot():
    products = [
        make_product(id=1, stock=0, costo=5, precio=9),
        make_product(id=2, stock=4, costo=2, precio=3),
        make_product(id=3, stock=20, costo=1, precio=1.5),
        make_product(id=4, stock=80, costo=1, precio=2, max_stock=50),
    ]
    snapshot = inventory_snapshot(products)

    assert snapshot.total_productos == 4
    assert snapshot.productos_activos == 3
    assert (snapshot.sin_stock, snapshot.poco_stock, snapshot.en_stock, snapshot.sobre_stock) == (1, 1, 1, 1)
    assert snapshot.valor_costo == 108.0
    assert snapshot.valor_venta == 202.0


def test_dashboard_stats():
    products = [
        make_product(id=1, stock=0, costo=5, precio=9),
        make_product(id=2, stock=10, costo=2, precio=3),
    ]
    movimientos = [movement(2, "entrada", 5), movement(2, "salida", 1), movement(2, "ajuste", 3)]
    stats = dashboard_stats(products, movimientos, generate_alerts(products, NOW))

    assert stats.productos_activos == 1
    assert stats.total_productos == 2
    assert stats.valor_total_costo == 20.0
    assert stats.valor_total_precio == 30.0
    assert (stats.movimientos_hoy, stats.entradas_hoy, stats.salidas_hoy, stats.ajustes_hoy) == (3, 1, 1, 1)
    assert stats.sin_stock == 1
    assert stats.poco_stock == 1
    assert stats.alertas_vencimiento == 0


def test_movement_report_totals_and_top_products():
    products = [
        make_product(id=1, sku="A", nombre="Arroz", costo=1, precio=2),
        make_product(id=2, sku="B", nombre="Frijol", costo=3, precio=5),
    ]
    movimientos = [
        movement(1, "salida", 4),
        movement(2, "salida", 6),
        movement(1, "salida", 1),
        movement(1, "entrada", 10),
        movement(2, "ajuste", 2),
        # Fuera del periodo y de un producto eliminado
        movement(1, "salida", 50, fecha=datetime(2024, 5, 31, 23, 59)),
        movement(99, "salida", 7),
    ]
    desde, hasta = period_range("mes", NOW)
    report = movement_report(products, movimientos, "mes", desde, hasta)

    assert report.total_eventos == 6
    assert (report.entradas, report.salidas, report.ajustes) == (1, 4, 1)
    assert report.unidades_entrada == 10
    assert report.unidades_salida == 18
    assert report.valor_costo_entradas == 10.0
    assert report.valor_costo_salidas == 23.0
    assert report.valor_venta_salidas == 40.0
    assert [(t.sku, t.cantidad) for t in report.top_salidas] == [("B", 6), ("A", 5)]
    assert [(t.sku, t.cantidad) for t in report.top_entradas] == [("A", 10)]
