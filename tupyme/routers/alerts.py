from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from tupyme.dependencies import get_now, get_product_store, require_permission
from tupyme.schemas.alert import Alert, AlertPriority, AlertStats, AlertType
from tupyme.services.alerts import generate_alerts, summarize_alerts
from tupyme.services.stores import ProductStore
from tupyme.utils.permissions import VER_ALERTAS

router = APIRouter(
    prefix="/alertas",
    tags=["Alertas"],
    dependencies=[Depends(require_permission(VER_ALERTAS))],
)


@router.get("/", response_model=List[Alert])
def get_alerts(
    store: ProductStore = Depends(get_product_store),
    now: datetime = Depends(get_now),
    tipo: Optional[AlertType] = Query(None),
    prioridad: Optional[AlertPriority] = Query(None),
):
    """Alertas de stock y vencimiento calculadas al momento, ordenadas por prioridad."""
    alerts = generate_alerts(store.list(), now)
    if tipo:
        alerts = [a for a in alerts if a.tipo == tipo]
    if prioridad:
        alerts = [a for a in alerts if a.prioridad == prioridad]
    return alerts


@router.get("/resumen", response_model=AlertStats)
def get_alerts_summary(
    store: ProductStore = Depends(get_product_store),
    now: datetime = Depends(get_now),
):
    return summarize_alerts(generate_alerts(store.list(), now))
