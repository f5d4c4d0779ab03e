import datetime
from typing import List
from pydantic import BaseModel


class DashboardStats(BaseModel):
    """KPIs de la pantalla de inicio. "Activos" son los productos con stock > 0."""

    productos_activos: int
    total_productos: int
    valor_total_costo: float
    valor_total_precio: float
    movimientos_hoy: int
    entradas_hoy: int
    salidas_hoy: int
    ajustes_hoy: int
    sin_stock: int
    poco_stock: int
    alertas_vencimiento: int


class TopProducto(BaseModel):
    producto_id: int
    nombre: str
    sku: str
    cantidad: int


class MovementReport(BaseModel):
    periodo: str
    desde: datetime.datetime
    hasta: datetime.datetime
    total_eventos: int
    entradas: int
    salidas: int
    ajustes: int
    unidades_entrada: int
    unidades_salida: int
    valor_costo_entradas: float
    valor_costo_salidas: float
    valor_venta_salidas: float
    top_salidas: List[TopProducto]
    top_entradas: List[TopProducto]


class InventorySnapshot(BaseModel):
    total_productos: int
    productos_activos: int
    valor_costo: float
    valor_venta: float
    sin_stock: int
    poco_stock: int
    en_stock: int
    sobre_stock: int
