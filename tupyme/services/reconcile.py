"""
Reconciliación de importaciones CSV/XLSX contra el inventario actual.

Cada fila se valida por separado: una fila con errores se descarta entera y
se informa con su número (la primera fila de datos es la 2, tras el
encabezado), pero no impide importar las demás.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Literal, Mapping, Optional

from tupyme.models.product import Product
from tupyme.services.constants import DEFAULT_CATEGORIA, DEFAULT_FORMATO
from tupyme.utils.tabular import (
    cell_text,
    parse_boolean,
    parse_date,
    parse_decimal,
    parse_integer,
)
from tupyme.utils.validation import is_perishable_category, threshold_error

ImportMode = Literal["add", "replace"]


@dataclass
class ImportResult:
    accepted: list[Product] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _parse_field(
    row: Mapping[str, Any],
    key: str,
    parser: Callable[[Any], Any],
    errores: list[str],
    mensaje: str,
):
    try:
        return parser(row.get(key))
    except ValueError:
        errores.append(mensaje)
        return None


def _sku_key(sku: str) -> str:
    return sku.casefold()


def reconcile_import(
    rows: Iterable[Mapping[str, Any]],
    mode: ImportMode,
    existing: Iterable[Product],
) -> ImportResult:
    """Valida las filas importadas y construye los productos aceptados.

    - `replace`: los identificadores empiezan en 1.
    - `add`: empiezan en el mayor identificador existente + 1 y no se admiten
      SKU que ya estén en el inventario.
    Las filas con `activo` falso se omiten sin contar como error. `existing`
    no se modifica; quien llama decide si suma o reemplaza.
    """
    if mode not in ("add", "replace"):
        raise ValueError(f"Modo de importación no válido: {mode!r}")

    existing = list(existing)
    if mode == "replace":
        base_id = 1
        skus_ocupados: dict[str, Optional[int]] = {}
    else:
        base_id = max((p.id or 0 for p in existing), default=0) + 1
        skus_ocupados = {_sku_key(p.sku): None for p in existing if p.sku}

    result = ImportResult()

    for index, row in enumerate(rows):
        fila = index + 2
        errores: list[str] = []

        sku = cell_text(row.get("sku"))
        nombre = cell_text(row.get("nombre"))
        if not sku:
            errores.append("sku vacío")
        if not nombre:
            errores.append("nombre vacío")

        costo = _parse_field(row, "costo", parse_decimal, errores, "costo inválido")
        precio = _parse_field(
            row, "precio_venta", parse_decimal, errores, "precio_venta inválido"
        )
        stock = _parse_field(row, "stock", parse_integer, errores, "stock inválido")
        min_stock = _parse_field(
            row, "min_stock", parse_integer, errores, "min_stock inválido"
        )
        max_stock = _parse_field(
            row, "max_stock", parse_integer, errores, "max_stock inválido"
        )

        if costo is not None and costo < 0:
            errores.append("costo debe ser >= 0")
        if precio is not None and precio < 0:
            errores.append("precio_venta debe ser >= 0")
        if stock is not None and stock < 0:
            errores.append("stock debe ser >= 0")
        if min_stock is not None and min_stock < 0:
            errores.append("min_stock debe ser >= 0")
        error_umbral = threshold_error(min_stock, max_stock)
        if error_umbral:
            errores.append(error_umbral)

        fecha_vencimiento = _parse_field(
            row,
            "fecha_vencimiento",
            parse_date,
            errores,
            "fecha_vencimiento formato inválido (usar YYYY-MM-DD)",
        )
        categoria = cell_text(row.get("categoria"))
        if (
            is_perishable_category(categoria)
            and fecha_vencimiento is None
            and not cell_text(row.get("fecha_vencimiento"))
        ):
            errores.append("fecha_vencimiento requerida para categoría perecedera")

        if sku and _sku_key(sku) in skus_ocupados:
            fila_previa = skus_ocupados[_sku_key(sku)]
            if fila_previa is None:
                errores.append(f"sku {sku} ya existe en el inventario")
            else:
                errores.append(f"sku {sku} duplicado (fila {fila_previa})")

        activo = parse_boolean(row.get("activo"))

        if errores:
            result.errors.append(f"Fila {fila}: {', '.join(errores)}")
            continue

        if not activo:
            continue

        skus_ocupados[_sku_key(sku)] = fila
        result.accepted.append(
            Product(
                id=base_id + len(result.accepted),
                sku=sku,
                nombre=nombre,
                formato=cell_text(row.get("formato")) or DEFAULT_FORMATO,
                categoria=categoria or DEFAULT_CATEGORIA,
                costo=costo or 0.0,
                precio=precio or 0.0,
                stock=stock or 0,
                min_stock=min_stock,
                max_stock=max_stock,
                fecha_vencimiento=fecha_vencimiento,
                notas=cell_text(row.get("notas")) or None,
                activo=True,
            )
        )

    return result
