from datetime import date, datetime

from tupyme.services.alerts import generate_alerts, parse_expiry, summarize_alerts

from conftest import make_product

TODAY = date(2024, 6, 15)


def test_one_stock_alert_per_product():
    products = [
        make_product(id=1, sku="A", stock=0),
        make_product(id=2, sku="B", stock=10),
        make_product(id=3, sku="C", stock=11),
        make_product(id=4, sku="D", stock=60, max_stock=60),
    ]
    alerts = generate_alerts(products, TODAY)

    assert [(a.producto_id, a.tipo, a.prioridad) for a in alerts] == [
        (1, "sin_stock", "alta"),
        (2, "poco_stock", "media"),
        (4, "sobre_stock", "baja"),
    ]
    assert alerts[0].mensaje == "Producto agotado - requiere reposición urgente"
    assert alerts[1].stock_minimo == 10
    assert "máx: 60" in alerts[2].mensaje


def test_generate_is_idempotent():
    products = [
        make_product(id=1, stock=3, fecha_vencimiento=date(2024, 6, 20)),
        make_product(id=2, stock=0),
    ]
    assert generate_alerts(products, TODAY) == generate_alerts(products, TODAY)


def test_expiry_messages_and_window():
    products = [
        make_product(id=1, sku="HOY", fecha_vencimiento=date(2024, 6, 15)),
        make_product(id=2, sku="MAN", fecha_vencimiento=date(2024, 6, 16)),
        make_product(id=3, sku="D10", fecha_vencimiento=date(2024, 6, 25)),
        make_product(id=4, sku="D11", fecha_vencimiento=date(2024, 6, 26)),
    ]
    alerts = {a.producto_sku: a for a in generate_alerts(products, TODAY)}

    assert set(alerts) == {"HOY", "MAN", "D10"}
    assert "HOY" in alerts["HOY"].mensaje
    assert "MAÑANA" in alerts["MAN"].mensaje
    assert alerts["D10"].mensaje == "Producto vence en 10 días - considerar promoción"
    assert alerts["D10"].dias_restantes == 10
    assert all(a.tipo == "vencimiento" and a.prioridad == "media" for a in alerts.values())


def test_expired_product_is_high_priority():
    product = make_product(fecha_vencimiento=date(2024, 6, 12))
    (alert,) = generate_alerts([product], TODAY)

    assert alert.tipo == "vencimiento"
    assert alert.prioridad == "alta"
    assert alert.dias_restantes == -3
    assert alert.mensaje == "Producto VENCIDO hace 3 día(s) - retirar"


def test_no_expiry_alert_without_stock():
    product = make_product(stock=0, fecha_vencimiento=date(2024, 6, 10))
    alerts = generate_alerts([product], TODAY)

    assert [a.tipo for a in alerts] == ["sin_stock"]


def test_stock_and_expiry_alerts_are_independent():
    product = make_product(stock=4, fecha_vencimiento=date(2024, 6, 17))
    alerts = generate_alerts([product], TODAY)

    assert sorted(a.tipo for a in alerts) == ["poco_stock", "vencimiento"]


def test_malformed_or_text_dates():
    assert parse_expiry("no es una fecha") is None
    assert parse_expiry("2024-13-45") is None
    assert parse_expiry("20/06/2024") == date(2024, 6, 20)

    product = make_product(stock=20)
    product.fecha_vencimiento = "fecha rota"
    assert generate_alerts([product], TODAY) == []


def test_sorted_by_priority_and_stable():
    products = [
        make_product(id=1, sku="BAJA", stock=200, max_stock=100),
        make_product(id=2, sku="MEDIA-1", stock=5),
        make_product(id=3, sku="ALTA", stock=0),
        make_product(id=4, sku="MEDIA-2", stock=6),
    ]
    alerts = generate_alerts(products, TODAY)

    assert [a.producto_sku for a in alerts] == ["ALTA", "MEDIA-1", "MEDIA-2", "BAJA"]


def test_as_of_accepts_datetime():
    product = make_product(fecha_vencimiento=date(2024, 6, 16))
    (alert,) = generate_alerts([product], datetime(2024, 6, 15, 23, 59))

    assert alert.dias_restantes == 1
    assert alert.fecha == TODAY


def test_summarize_alerts():
    products = [
        make_product(id=1, stock=0),
        make_product(id=2, stock=2, fecha_vencimiento=date(2024, 6, 1)),
    ]
    stats = summarize_alerts(generate_alerts(products, TODAY))

    assert stats.sin_stock == 1
    assert stats.poco_stock == 1
    assert stats.vencimiento == 1
    assert stats.sobre_stock == 0
    assert stats.total == 3
