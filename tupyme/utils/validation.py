import unicodedata
from typing import Optional

from tupyme.services.constants import CATEGORIAS_PERECEDERAS

_PERECEDERAS = {c.lower() for c in CATEGORIAS_PERECEDERAS}


def normalize_category(categoria: str) -> str:
    """Normaliza el nombre de la categoría:
    - Elimina espacios extra
    - Capitaliza la primera letra
    Las tildes se conservan: "Lácteos" decide si la categoría es perecedera.
    """
    categoria = " ".join(categoria.split())
    categoria = unicodedata.normalize("NFC", categoria)
    return categoria[:1].upper() + categoria[1:]


def is_perishable_category(categoria: Optional[str]) -> bool:
    """True si la categoría exige fecha de vencimiento (sin distinguir mayúsculas)."""
    if not categoria:
        return False
    return unicodedata.normalize("NFC", categoria.strip()).lower() in _PERECEDERAS


def threshold_error(min_stock: Optional[int], max_stock: Optional[int]) -> Optional[str]:
    if min_stock is not None and max_stock is not None and max_stock <= min_stock:
        return "max_stock debe ser mayor que min_stock"
    return None


def product_rule_errors(
    categoria: Optional[str],
    fecha_vencimiento,
    min_stock: Optional[int],
    max_stock: Optional[int],
) -> list[str]:
    """Reglas que cruzan campos; se aplican al estado final del producto."""
    errores = []
    error = threshold_error(min_stock, max_stock)
    if error:
        errores.append(error)
    if is_perishable_category(categoria) and fecha_vencimiento is None:
        errores.append("fecha_vencimiento requerida para categoría perecedera")
    return errores
