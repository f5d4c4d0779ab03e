import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

AlertType = Literal["sin_stock", "poco_stock", "sobre_stock", "vencimiento"]
AlertPriority = Literal["alta", "media", "baja"]


class Alert(BaseModel):
    """Alerta derivada de un producto. No se persiste."""

    id: str
    producto_id: int
    producto_nombre: str
    producto_sku: str
    tipo: AlertType
    prioridad: AlertPriority
    mensaje: str
    stock_actual: int
    stock_minimo: int
    fecha_vencimiento: Optional[datetime.date] = None
    dias_restantes: Optional[int] = None
    fecha: datetime.date = Field(..., description="Fecha de evaluación")


class AlertStats(BaseModel):
    sin_stock: int
    poco_stock: int
    sobre_stock: int
    vencimiento: int
    total: int
