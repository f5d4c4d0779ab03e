"""
Lectura y escritura de inventario en CSV/XLSX.

- Los encabezados se normalizan (minúsculas, sin tildes, espacios → `_`) y se
  traducen a los nombres canónicos de `CSV_HEADERS`.
- Los números aceptan coma decimal y símbolos de moneda.
- Las funciones `parse_*` devuelven `None` si el valor está vacío y lanzan
  `ValueError` si está mal formado; el reconciliador convierte ese error en un
  mensaje por fila.
"""

import datetime
import io
import math
import re
import unicodedata
from typing import Any, Iterable, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.worksheet.datavalidation import DataValidation

from tupyme.services.constants import CATEGORIAS_OPTIONS, FORMATO_OPTIONS

# Columnas canónicas para importar/exportar (v1)
CSV_HEADERS = (
    "sku",
    "nombre",
    "categoria",
    "formato",
    "costo",
    "precio_venta",
    "stock",
    "min_stock",
    "max_stock",
    "fecha_vencimiento",
    "activo",
    "notas",
)

# Encabezados de la plantilla descargable (nombres amigables)
TEMPLATE_HEADERS = (
    "SKU",
    "Nombre",
    "Formato",
    "Categoría",
    "Stock",
    "Stock mínimo",
    "Stock máximo",
    "Vencimiento",
    "Costo",
    "Precio",
)

HEADER_MAP = {
    "precio": "precio_venta",
    "precioventa": "precio_venta",
    "precio_de_venta": "precio_venta",
    "minstock": "min_stock",
    "min": "min_stock",
    "stock_minimo": "min_stock",
    "maxstock": "max_stock",
    "max": "max_stock",
    "stock_maximo": "max_stock",
    "fechavencimiento": "fecha_vencimiento",
    "vencimiento": "fecha_vencimiento",
    "expiration": "fecha_vencimiento",
    "expiration_date": "fecha_vencimiento",
    "presentacion": "formato",
    "unit": "formato",
    "unidad": "formato",
}

VALORES_FALSOS = {"false", "0", "no", "n", "falso"}

XLSX_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

EXCEL_EPOCH = datetime.date(1899, 12, 30)


def _strip_accents(text: str) -> str:
    return "".join(
        c for c in unicodedata.normalize("NFD", text) if unicodedata.category(c) != "Mn"
    )


def normalize_header(header: Any) -> str:
    h = _strip_accents(str(header).strip().lower())
    h = re.sub(r"\s+", "_", h)
    return HEADER_MAP.get(h, h)


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text


def detect_separator(text: str) -> str:
    first_line = text.split("\n", 1)[0]
    return ";" if first_line.count(";") > first_line.count(",") else ","


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def cell_text(value: Any) -> str:
    """Texto limpio de una celda; los enteros leídos como float pierden el `.0`."""
    if _is_empty(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_decimal(value: Any) -> Optional[float]:
    if _is_empty(value):
        return None
    if isinstance(value, bool):
        raise ValueError(f"número inválido: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    negative = text.startswith("-")
    cleaned = re.sub(r"[^\d.,]", "", text)
    if not re.search(r"\d", cleaned):
        # Sin dígitos ("N/A", "-"): se importa como 0
        return 0.0
    if "," in cleaned and "." in cleaned:
        # El último separador es el decimal
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    else:
        cleaned = cleaned.replace(",", ".")

    if not re.fullmatch(r"\d+(\.\d*)?|\.\d+", cleaned):
        raise ValueError(f"número inválido: {value!r}")
    number = float(cleaned)
    return -number if negative else number


def parse_integer(value: Any) -> Optional[int]:
    if isinstance(value, str) and not re.search(r"\d", value):
        return None
    number = parse_decimal(value)
    if number is None:
        return None
    if not number.is_integer():
        raise ValueError(f"entero inválido: {value!r}")
    return int(number)


def parse_date(value: Any) -> Optional[datetime.date]:
    """Acepta fechas ISO, DD/MM/YYYY, celdas de fecha y números de serie de Excel."""
    if _is_empty(value):
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, bool):
        raise ValueError(f"fecha inválida: {value!r}")
    if isinstance(value, (int, float)):
        if value <= 0:
            raise ValueError(f"fecha inválida: {value!r}")
        try:
            return EXCEL_EPOCH + datetime.timedelta(days=int(value))
        except OverflowError:
            raise ValueError(f"fecha inválida: {value!r}")

    text = str(value).strip()
    iso = re.fullmatch(r"(\d{4}-\d{2}-\d{2})(?:[ T][\d:.]+)?", text)
    if iso:
        return datetime.date.fromisoformat(iso.group(1))

    match = re.fullmatch(r"(\d{1,2})[/-](\d{1,2})[/-](\d{4})", text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return datetime.date(year, month, day)

    raise ValueError(f"fecha inválida: {value!r}")


def parse_boolean(value: Any) -> bool:
    """TRUE/FALSE, 1/0, si/no, verdadero/falso. Vacío equivale a verdadero."""
    if _is_empty(value):
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() not in VALORES_FALSOS


def _records(df: pd.DataFrame) -> list[dict[str, Any]]:
    df = df.rename(columns=normalize_header)
    df = df.astype(object).where(pd.notna(df), "")
    rows = df.to_dict(orient="records")
    # Filas completamente vacías (habituales al final de una hoja)
    return [row for row in rows if any(not _is_empty(v) for v in row.values())]


def parse_csv(text: str) -> list[dict[str, Any]]:
    clean_text = strip_bom(text)
    if not clean_text.strip():
        return []
    df = pd.read_csv(
        io.StringIO(clean_text),
        sep=detect_separator(clean_text),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )
    return _records(df)


def parse_xlsx(content: bytes) -> list[dict[str, Any]]:
    """Lee la hoja cuyo nombre contiene "inventario" o, si no hay, la primera."""
    xls = pd.ExcelFile(io.BytesIO(content), engine="openpyxl")
    if not xls.sheet_names:
        raise ValueError("No se encontró ninguna hoja en el archivo")
    sheet = next(
        (name for name in xls.sheet_names if "inventario" in name.lower()),
        xls.sheet_names[0],
    )
    df = pd.read_excel(xls, sheet_name=sheet, dtype=object)
    return _records(df)


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def parse_upload(
    filename: Optional[str], content_type: Optional[str], content: bytes
) -> list[dict[str, Any]]:
    """Elige el lector según la extensión o el tipo MIME del archivo subido."""
    name = (filename or "").lower()
    # La extensión manda: algunos navegadores envían los CSV como application/vnd.ms-excel
    if name.endswith(".xlsx"):
        return parse_xlsx(content)
    if name.endswith((".csv", ".txt")):
        return parse_csv(_decode(content))
    if content_type in XLSX_CONTENT_TYPES:
        return parse_xlsx(content)
    if (content_type or "").startswith("text/"):
        return parse_csv(_decode(content))
    raise ValueError("Formato de archivo no soportado. Usa CSV o XLSX.")


def _money(value: Optional[float]) -> str:
    return f"{(value or 0):.2f}"


def _optional(value: Any) -> Any:
    return "" if value is None else value


def export_csv(products: Iterable) -> str:
    rows = [
        {
            "sku": p.sku,
            "nombre": p.nombre,
            "categoria": p.categoria,
            "formato": p.formato,
            "costo": _money(p.costo),
            "precio_venta": _money(p.precio),
            "stock": p.stock,
            "min_stock": _optional(p.min_stock),
            "max_stock": _optional(p.max_stock),
            "fecha_vencimiento": p.fecha_vencimiento.isoformat()
            if p.fecha_vencimiento
            else "",
            "activo": "true",
            "notas": p.notas or "",
        }
        for p in products
    ]
    df = pd.DataFrame(rows, columns=list(CSV_HEADERS))
    return df.to_csv(index=False, lineterminator="\n")


def template_csv() -> str:
    return ",".join(TEMPLATE_HEADERS) + "\n"


def template_xlsx(formatos: Optional[Iterable[str]] = None) -> bytes:
    """Plantilla con listas desplegables en Formato (C) y Categoría (D)."""
    formatos = list(formatos or FORMATO_OPTIONS)

    wb = Workbook()
    ws = wb.active
    ws.title = "Inventario"
    ws.append(list(TEMPLATE_HEADERS))
    for column, width in zip("ABCDEFGHIJ", (12, 25, 15, 20, 10, 12, 12, 14, 10, 10)):
        ws.column_dimensions[column].width = width

    dv_formato = DataValidation(
        type="list", formula1=f'"{",".join(formatos)}"', allow_blank=True
    )
    dv_categoria = DataValidation(
        type="list", formula1=f'"{",".join(CATEGORIAS_OPTIONS)}"', allow_blank=True
    )
    ws.add_data_validation(dv_formato)
    ws.add_data_validation(dv_categoria)
    dv_formato.add("C2:C100")
    dv_categoria.add("D2:D100")

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
