"""
Alertas de inventario.

Las alertas no se guardan: se recalculan desde cero con cada lectura del
catálogo. Cada producto genera como mucho una alerta de stock (sin stock, poco
stock o sobre stock) y, de forma independiente, una alerta de vencimiento.
"""

import datetime
from typing import Iterable, Optional

from tupyme.schemas.alert import Alert, AlertStats
from tupyme.services.constants import DIAS_AVISO_VENCIMIENTO
from tupyme.services.stock_status import (
    POCO_STOCK,
    SIN_STOCK,
    SOBRE_STOCK,
    classify_stock,
    effective_min_stock,
)
from tupyme.utils.tabular import parse_date

ORDEN_PRIORIDAD = {"alta": 0, "media": 1, "baja": 2}


def parse_expiry(value) -> Optional[datetime.date]:
    """Fecha de vencimiento o None si está vacía o mal formada (nunca lanza)."""
    try:
        return parse_date(value)
    except ValueError:
        return None


def _as_date(as_of: datetime.date | datetime.datetime) -> datetime.date:
    return as_of.date() if isinstance(as_of, datetime.datetime) else as_of


def _stock_alert(product, min_stock: int) -> Optional[dict]:
    estado = classify_stock(product.stock or 0, product.min_stock, product.max_stock)
    if estado == SIN_STOCK:
        return {
            "tipo": "sin_stock",
            "prioridad": "alta",
            "mensaje": "Producto agotado - requiere reposición urgente",
        }
    if estado == POCO_STOCK:
        return {
            "tipo": "poco_stock",
            "prioridad": "media",
            "mensaje": f"Stock bajo (mín: {min_stock}) - considerar reposición",
        }
    if estado == SOBRE_STOCK:
        return {
            "tipo": "sobre_stock",
            "prioridad": "baja",
            "mensaje": f"Stock excedido (máx: {product.max_stock}) - considerar redistribución",
        }
    return None


def _expiry_alert(dias: int) -> Optional[dict]:
    if dias < 0:
        return {
            "prioridad": "alta",
            "mensaje": f"Producto VENCIDO hace {abs(dias)} día(s) - retirar",
        }
    if dias <= DIAS_AVISO_VENCIMIENTO:
        if dias == 0:
            mensaje = "Producto vence HOY - acción inmediata requerida"
        elif dias == 1:
            mensaje = "Producto vence MAÑANA - priorizar venta"
        else:
            mensaje = f"Producto vence en {dias} días - considerar promoción"
        return {"prioridad": "media", "mensaje": mensaje}
    return None


def generate_alerts(
    products: Iterable, as_of: datetime.date | datetime.datetime
) -> list[Alert]:
    """Genera las alertas de un conjunto de productos a fecha `as_of`.

    Función pura: la misma entrada produce siempre la misma lista, ordenada por
    prioridad (alta, media, baja) y, a igual prioridad, en el orden de los
    productos.
    """
    today = _as_date(as_of)
    alerts: list[Alert] = []

    for product in products:
        stock = product.stock or 0
        min_stock = effective_min_stock(product.min_stock)
        base = {
            "producto_id": product.id,
            "producto_nombre": product.nombre,
            "producto_sku": product.sku or "SIN-SKU",
            "stock_actual": stock,
            "stock_minimo": min_stock,
            "fecha": today,
        }

        stock_alert = _stock_alert(product, min_stock)
        if stock_alert:
            alerts.append(
                Alert(id=f"alert-{len(alerts) + 1}", **base, **stock_alert)
            )

        if stock <= 0:
            continue
        expiry = parse_expiry(product.fecha_vencimiento)
        if expiry is None:
            continue
        dias = (expiry - today).days
        expiry_alert = _expiry_alert(dias)
        if expiry_alert:
            alerts.append(
                Alert(
                    id=f"alert-{len(alerts) + 1}",
                    tipo="vencimiento",
                    fecha_vencimiento=expiry,
                    dias_restantes=dias,
                    **base,
                    **expiry_alert,
                )
            )

    # sorted() es estable: a igual prioridad se mantiene el orden de entrada
    return sorted(alerts, key=lambda alert: ORDEN_PRIORIDAD[alert.prioridad])


def summarize_alerts(alerts: Iterable[Alert]) -> AlertStats:
    alerts = list(alerts)
    return AlertStats(
        sin_stock=sum(1 for a in alerts if a.tipo == "sin_stock"),
        poco_stock=sum(1 for a in alerts if a.tipo == "poco_stock"),
        sobre_stock=sum(1 for a in alerts if a.tipo == "sobre_stock"),
        vencimiento=sum(1 for a in alerts if a.tipo == "vencimiento"),
        total=len(alerts),
    )
