"""
Datos del panel de inicio y de los reportes.

Todo se calcula en memoria a partir de los productos y movimientos de la
organización; las fechas de referencia se reciben como parámetro.
"""

from collections import Counter
from datetime import datetime, time
from typing import Iterable

from dateutil.relativedelta import MO, relativedelta

from tupyme.schemas.report import (
    DashboardStats,
    InventorySnapshot,
    MovementReport,
    TopProducto,
)
from tupyme.services.stock_status import (
    EN_STOCK,
    POCO_STOCK,
    SIN_STOCK,
    SOBRE_STOCK,
    classify_product,
)

TOP_LIMIT = 5


def period_range(periodo: str, now: datetime) -> tuple[datetime, datetime]:
    """Intervalo [desde, hasta) del periodo. La semana empieza el lunes."""
    today = datetime.combine(now.date(), time.min)
    if periodo == "hoy":
        return today, today + relativedelta(days=1)
    if periodo == "ayer":
        return today - relativedelta(days=1), today
    if periodo == "semana":
        start = today + relativedelta(weekday=MO(-1))
        return start, start + relativedelta(weeks=1)
    if periodo == "mes":
        start = today.replace(day=1)
        return start, start + relativedelta(months=1)
    raise ValueError(f"Periodo no válido: {periodo!r}")


def _valor_stock(products) -> tuple[float, float]:
    con_stock = [p for p in products if (p.stock or 0) > 0]
    costo = sum(p.stock * (p.costo or 0) for p in con_stock)
    precio = sum(p.stock * (p.precio or 0) for p in con_stock)
    return round(costo, 2), round(precio, 2)


def dashboard_stats(
    products: Iterable, movements_today: Iterable, alerts: Iterable
) -> DashboardStats:
    products = list(products)
    tipos = Counter(m.tipo for m in movements_today)
    estados = Counter(classify_product(p) for p in products)
    valor_costo, valor_precio = _valor_stock(products)

    return DashboardStats(
        productos_activos=sum(1 for p in products if (p.stock or 0) > 0),
        total_productos=len(products),
        valor_total_costo=valor_costo,
        valor_total_precio=valor_precio,
        movimientos_hoy=sum(tipos.values()),
        entradas_hoy=tipos["entrada"],
        salidas_hoy=tipos["salida"],
        ajustes_hoy=tipos["ajuste"],
        sin_stock=estados[SIN_STOCK],
        poco_stock=estados[POCO_STOCK],
        alertas_vencimiento=sum(1 for a in alerts if a.tipo == "vencimiento"),
    )


def _top(cantidades: Counter, by_id: dict) -> list[TopProducto]:
    # Los movimientos de productos ya eliminados no aparecen en el ranking
    ranking = [(pid, qty) for pid, qty in cantidades.most_common() if pid in by_id]
    return [
        TopProducto(
            producto_id=pid,
            nombre=by_id[pid].nombre,
            sku=by_id[pid].sku,
            cantidad=qty,
        )
        for pid, qty in ranking[:TOP_LIMIT]
    ]


def movement_report(
    products: Iterable,
    movements: Iterable,
    periodo: str,
    desde: datetime,
    hasta: datetime,
) -> MovementReport:
    by_id = {p.id: p for p in products}
    in_period = [m for m in movements if desde <= m.fecha < hasta]
    entradas = [m for m in in_period if m.tipo == "entrada"]
    salidas = [m for m in in_period if m.tipo == "salida"]

    valor_costo_entradas = sum(
        m.cantidad * (by_id[m.product_id].costo or 0)
        for m in entradas
        if m.product_id in by_id
    )
    valor_costo_salidas = sum(
        m.cantidad * (by_id[m.product_id].costo or 0)
        for m in salidas
        if m.product_id in by_id
    )
    valor_venta_salidas = sum(
        m.cantidad * (by_id[m.product_id].precio or 0)
        for m in salidas
        if m.product_id in by_id
    )

    top_salidas, top_entradas = Counter(), Counter()
    for m in salidas:
        top_salidas[m.product_id] += m.cantidad
    for m in entradas:
        top_entradas[m.product_id] += m.cantidad

    return MovementReport(
        periodo=periodo,
        desde=desde,
        hasta=hasta,
        total_eventos=len(in_period),
        entradas=len(entradas),
        salidas=len(salidas),
        ajustes=sum(1 for m in in_period if m.tipo == "ajuste"),
        unidades_entrada=sum(m.cantidad for m in entradas),
        unidades_salida=sum(m.cantidad for m in salidas),
        valor_costo_entradas=round(valor_costo_entradas, 2),
        valor_costo_salidas=round(valor_costo_salidas, 2),
        valor_venta_salidas=round(valor_venta_salidas, 2),
        top_salidas=_top(top_salidas, by_id),
        top_entradas=_top(top_entradas, by_id),
    )


def inventory_snapshot(products: Iterable) -> InventorySnapshot:
    products = list(products)
    estados = Counter(classify_product(p) for p in products)
    valor_costo, valor_venta = _valor_stock(products)
    return InventorySnapshot(
        total_productos=len(products),
        productos_activos=len(products) - estados[SIN_STOCK],
        valor_costo=valor_costo,
        valor_venta=valor_venta,
        sin_stock=estados[SIN_STOCK],
        poco_stock=estados[POCO_STOCK],
        en_stock=estados[EN_STOCK],
        sobre_stock=estados[SOBRE_STOCK],
    )
