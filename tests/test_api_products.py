def test_create_product_assigns_id_and_status(client, create_product):
    first = create_product()
    second = create_product(sku="FRI-1", nombre="Frijol", stock=3)

    assert (first["id"], second["id"]) == (1, 2)
    assert first["categoria"] == "Sin categoría"
    assert first["formato"] == "Unidad"
    assert first["estado_stock"] == "En stock"
    assert second["estado_stock"] == "Poco stock"
    assert second["severidad"] == "warning"


def test_duplicate_sku_is_rejected(client, admin_headers, create_product):
    create_product()
    response = client.post(
        "/productos/", json={"sku": "arr-1", "nombre": "Arroz otro"}, headers=admin_headers
    )
    assert response.status_code == 400


def test_perishable_product_requires_expiry_date(client, admin_headers, create_product):
    response = client.post(
        "/productos/",
        json={"sku": "LEC-1", "nombre": "Leche", "categoria": "lácteos"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert "fecha_vencimiento" in response.json()["detail"]

    product = create_product(
        sku="LEC-1", nombre="Leche", categoria="lácteos", fecha_vencimiento="2024-07-01"
    )
    assert product["categoria"] == "Lácteos"


def test_thresholds_must_be_coherent(client, admin_headers):
    response = client.post(
        "/productos/",
        json={"sku": "X", "nombre": "X", "min_stock": 20, "max_stock": 5},
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_list_filters_by_status_and_search(client, admin_headers, create_product):
    create_product(sku="A", nombre="Arroz", stock=0)
    create_product(sku="B", nombre="Azúcar", stock=5)
    create_product(sku="C", nombre="Café", stock=40, max_stock=30)
    create_product(sku="D", nombre="Fideos", stock=25)

    def skus(**params):
        response = client.get("/productos/", params=params, headers=admin_headers)
        assert response.status_code == 200
        return [p["sku"] for p in response.json()["data"]]

    assert skus(estado="sin-stock") == ["A"]
    assert skus(estado="poco-stock") == ["B"]
    assert skus(estado="sobre-stock") == ["C"]
    assert skus(estado="en-stock") == ["D"]
    assert skus(search="caf") == ["C"]
    assert skus(limit=2, offset=1) == ["B", "C"]


def test_update_stock_requires_reason(client, admin_headers, create_product):
    product = create_product(stock=20)

    response = client.put(
        f"/productos/{product['id']}", json={"stock": 12}, headers=admin_headers
    )
    assert response.status_code == 400
    current = client.get(f"/productos/{product['id']}", headers=admin_headers).json()
    assert current["stock"] == 20


def test_update_stock_records_adjustment(client, admin_headers, create_product):
    product = create_product(stock=20)

    response = client.put(
        f"/productos/{product['id']}",
        json={"stock": 12, "motivo": "Conteo físico", "precio": 2.5},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["stock"] == 12
    assert response.json()["precio"] == 2.5

    movements = client.get(
        "/movimientos/", params={"product_id": product["id"]}, headers=admin_headers
    ).json()
    (movement,) = movements["data"]
    assert movement["tipo"] == "ajuste"
    assert movement["cantidad"] == 8
    assert (movement["stock_antes"], movement["stock_despues"]) == (20, 12)
    assert movement["motivo"] == "Conteo físico"


def test_cashier_can_edit_but_not_adjust_stock(client, make_user, create_product):
    headers = make_user("cashier")
    product = create_product()

    rename = client.put(
        f"/productos/{product['id']}", json={"nombre": "Arroz 2kg"}, headers=headers
    )
    adjust = client.put(
        f"/productos/{product['id']}",
        json={"stock": 1, "motivo": "Rotura"},
        headers=headers,
    )
    assert rename.status_code == 200
    assert adjust.status_code == 403


def test_seller_cannot_create_or_delete(client, make_user, create_product):
    headers = make_user("seller")
    product = create_product()

    response = client.post(
        "/productos/", json={"sku": "N", "nombre": "Nuevo"}, headers=headers
    )
    assert response.status_code == 403
    assert client.delete(f"/productos/{product['id']}", headers=headers).status_code == 403
    # Pero puede consultar el catálogo
    assert client.get("/productos/", headers=headers).json()["total"] == 1


def test_delete_product_removes_its_movements(client, admin_headers, create_product):
    product = create_product()
    other = create_product(sku="OTRO")
    for target in (product, other):
        response = client.post(
            "/movimientos/",
            json={"product_id": target["id"], "tipo": "salida", "cantidad": 1},
            headers=admin_headers,
        )
        assert response.status_code == 201

    response = client.delete(f"/productos/{product['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert client.get(f"/productos/{product['id']}", headers=admin_headers).status_code == 404

    movements = client.get("/movimientos/", headers=admin_headers).json()
    assert [m["product_id"] for m in movements["data"]] == [other["id"]]


def test_product_in_registered_category(client, admin_headers):
    categoria = client.post(
        "/categorias/", json={"nombre": "  bebidas  "}, headers=admin_headers
    ).json()
    assert categoria["nombre"] == "Bebidas"

    response = client.post(
        "/productos/",
        json={
            "sku": "AGUA",
            "nombre": "Agua 1L",
            "id_categoria": categoria["id"],
            "fecha_vencimiento": "2025-01-01",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["categoria"] == "Bebidas"

    # No se puede borrar mientras tenga productos
    response = client.delete(f"/categorias/{categoria['id']}", headers=admin_headers)
    assert response.status_code == 400

    renamed = client.put(
        f"/categorias/{categoria['id']}", json={"nombre": "Bebidas frías"}, headers=admin_headers
    )
    assert renamed.status_code == 200
    product = client.get("/productos/1", headers=admin_headers).json()
    assert product["categoria"] == "Bebidas frías"
