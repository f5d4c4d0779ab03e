from typing import NamedTuple, Optional

from tupyme.services.constants import DEFAULT_MIN_STOCK


class StockStatus(NamedTuple):
    key: str  # sin-stock | poco-stock | en-stock | sobre-stock
    label: str
    severity: str  # destructive | warning | secondary | success


SIN_STOCK = StockStatus("sin-stock", "Sin stock", "destructive")
POCO_STOCK = StockStatus("poco-stock", "Poco stock", "warning")
SOBRE_STOCK = StockStatus("sobre-stock", "Sobre stock", "secondary")
EN_STOCK = StockStatus("en-stock", "En stock", "success")


def effective_min_stock(min_stock: Optional[int]) -> int:
    return DEFAULT_MIN_STOCK if min_stock is None else min_stock


def classify_stock(
    stock: int, min_stock: Optional[int] = None, max_stock: Optional[int] = None
) -> StockStatus:
    """Clasifica el stock de un producto.

    El orden de evaluación es fijo: sin stock, poco stock (límite inclusive),
    sobre stock (límite inclusive) y en stock.
    """
    # Filas antiguas con stock negativo también cuentan como agotadas
    if stock <= 0:
        return SIN_STOCK
    if stock <= effective_min_stock(min_stock):
        return POCO_STOCK
    if max_stock is not None and stock >= max_stock:
        return SOBRE_STOCK
    return EN_STOCK


def classify_product(product) -> StockStatus:
    return classify_stock(product.stock or 0, product.min_stock, product.max_stock)
