import io
from datetime import date, datetime

import pytest
from openpyxl import Workbook, load_workbook

from tupyme.utils.tabular import (
    TEMPLATE_HEADERS,
    detect_separator,
    export_csv,
    normalize_header,
    parse_boolean,
    parse_csv,
    parse_date,
    parse_decimal,
    parse_integer,
    parse_upload,
    parse_xlsx,
    template_csv,
    template_xlsx,
)

from conftest import make_product


def test_header_synonyms():
    assert normalize_header(" Precio ") == "precio_venta"
    assert normalize_header("precioVenta") == "precio_venta"
    assert normalize_header("Vencimiento") == "fecha_vencimiento"
    assert normalize_header("expiration_date") == "fecha_vencimiento"
    assert normalize_header("Stock mínimo") == "min_stock"
    assert normalize_header("Categoría") == "categoria"
    assert normalize_header("SKU") == "sku"


def test_detect_separator():
    assert detect_separator("sku;nombre;precio\n1,5;a;b") == ";"
    assert detect_separator("sku,nombre\n") == ","


def test_parse_csv_strips_bom_and_uses_semicolon():
    text = "\ufeffSKU;Nombre;Precio;Costo\nA-1;Café molido;3,50;2,10\n\n"
    rows = parse_csv(text)

    assert rows == [
        {"sku": "A-1", "nombre": "Café molido", "precio_venta": "3,50", "costo": "2,10"}
    ]


def test_parse_csv_empty_text():
    assert parse_csv("") == []
    assert parse_csv("\ufeff  ") == []


def test_parse_decimal():
    assert parse_decimal("1,5") == 1.5
    assert parse_decimal("$ 1.234,50") == 1234.5
    assert parse_decimal("1,234.50") == 1234.5
    assert parse_decimal("-2") == -2.0
    assert parse_decimal(3) == 3.0
    assert parse_decimal("") is None
    assert parse_decimal(None) is None
    # Sin dígitos se lee como 0
    assert parse_decimal("N/A") == 0.0
    assert parse_decimal("-") == 0.0
    with pytest.raises(ValueError):
        parse_decimal("1.2.3")


def test_parse_integer():
    assert parse_integer("12") == 12
    assert parse_integer(12.0) == 12
    assert parse_integer("N/A") is None
    with pytest.raises(ValueError):
        parse_integer("1,5")


def test_parse_date_formats():
    assert parse_date("2024-07-01") == date(2024, 7, 1)
    assert parse_date("2024-07-01 00:00:00") == date(2024, 7, 1)
    assert parse_date("1/7/2024") == date(2024, 7, 1)
    assert parse_date(datetime(2024, 7, 1, 8, 0)) == date(2024, 7, 1)
    # Número de serie de Excel
    assert parse_date(45474) == date(2024, 7, 1)
    with pytest.raises(ValueError):
        parse_date(99999999)
    assert parse_date("") is None
    with pytest.raises(ValueError):
        parse_date("julio")


def test_parse_boolean():
    for value in ("TRUE", "1", "si", "Verdadero", "", None):
        assert parse_boolean(value) is True
    for value in ("FALSE", "0", "no", "falso"):
        assert parse_boolean(value) is False


def test_export_csv_format():
    product = make_product(
        sku="A-1",
        nombre="Arroz",
        categoria="Cereales y Granos",
        costo=1.5,
        precio=2,
        stock=4,
        min_stock=2,
        fecha_vencimiento=date(2024, 7, 1),
    )
    lines = export_csv([product]).splitlines()

    assert lines[0] == (
        "sku,nombre,categoria,formato,costo,precio_venta,stock,min_stock,"
        "max_stock,fecha_vencimiento,activo,notas"
    )
    assert lines[1] == "A-1,Arroz,Cereales y Granos,Unidad,1.50,2.00,4,2,,2024-07-01,true,"


def test_template_csv_headers():
    assert template_csv().strip() == ",".join(TEMPLATE_HEADERS)


def test_template_xlsx_has_dropdowns_and_parses_back():
    content = template_xlsx()
    wb = load_workbook(io.BytesIO(content))
    ws = wb["Inventario"]

    assert [c.value for c in ws[1]] == list(TEMPLATE_HEADERS)
    ranges = {str(dv.sqref) for dv in ws.data_validations.dataValidation}
    assert ranges == {"C2:C100", "D2:D100"}

    # Sin filas de datos
    assert parse_xlsx(content) == []


def test_parse_xlsx_prefers_inventory_sheet():
    wb = Workbook()
    wb.active.title = "Instrucciones"
    wb.active.append(["Rellena la hoja Inventario"])
    ws = wb.create_sheet("Mi Inventario")
    ws.append(["SKU", "Nombre", "Stock", "Vencimiento"])
    ws.append(["A-1", "Yogur", 6, datetime(2024, 7, 1)])
    buffer = io.BytesIO()
    wb.save(buffer)

    (row,) = parse_xlsx(buffer.getvalue())
    assert row["sku"] == "A-1"
    assert row["stock"] == 6
    assert parse_date(row["fecha_vencimiento"]) == date(2024, 7, 1)


def test_parse_upload_dispatch():
    csv_bytes = "sku,nombre\nA,Arroz\n".encode("utf-8")
    assert parse_upload("datos.csv", "application/vnd.ms-excel", csv_bytes) == [
        {"sku": "A", "nombre": "Arroz"}
    ]
    assert parse_upload("datos", "text/csv", csv_bytes)[0]["sku"] == "A"
    with pytest.raises(ValueError):
        parse_upload("datos.pdf", "application/pdf", b"%PDF")
