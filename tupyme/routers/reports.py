from datetime import datetime
from typing import Literal
from fastapi import APIRouter, Depends, Query
from tupyme.dependencies import (
    get_movement_store,
    get_now,
    get_product_store,
    require_permission,
)
from tupyme.schemas.report import DashboardStats, InventorySnapshot, MovementReport
from tupyme.services.alerts import generate_alerts
from tupyme.services.reports import (
    dashboard_stats,
    inventory_snapshot,
    movement_report,
    period_range,
)
from tupyme.services.stores import MovementStore, ProductStore
from tupyme.utils.permissions import VER_REPORTES

dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

router = APIRouter(
    prefix="/reportes",
    tags=["Reportes"],
    dependencies=[Depends(require_permission(VER_REPORTES))],
)


@dashboard_router.get("/resumen", response_model=DashboardStats)
def get_dashboard(
    products: ProductStore = Depends(get_product_store),
    movements: MovementStore = Depends(get_movement_store),
    now: datetime = Depends(get_now),
):
    """KPIs del día: productos, valor del inventario y movimientos de hoy."""
    catalogo = products.list()
    desde, hasta = period_range("hoy", now)
    return dashboard_stats(
        catalogo, movements.between(desde, hasta), generate_alerts(catalogo, now)
    )


@router.get("/movimientos", response_model=MovementReport)
def get_movement_report(
    periodo: Literal["hoy", "ayer", "semana", "mes"] = Query("mes"),
    products: ProductStore = Depends(get_product_store),
    movements: MovementStore = Depends(get_movement_store),
    now: datetime = Depends(get_now),
):
    """Resumen de movimientos del periodo con los 5 productos con más salidas y entradas."""
    desde, hasta = period_range(periodo, now)
    return movement_report(
        products.list(), movements.between(desde, hasta), periodo, desde, hasta
    )


@router.get("/inventario", response_model=InventorySnapshot)
def get_inventory_report(products: ProductStore = Depends(get_product_store)):
    return inventory_snapshot(products.list())
