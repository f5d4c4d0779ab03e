import os
from datetime import datetime

# La app lee la configuración al importarse
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "clave-solo-para-tests"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from tupyme.dependencies import get_now
from tupyme.main import app
from tupyme.models.database import get_db
from tupyme.models.product import Product

# Sábado 15 de junio de 2024
NOW = datetime(2024, 6, 15, 10, 30)

PASSWORD = "secreto123"


def make_product(**fields) -> Product:
    data = {
        "organization_id": 1,
        "id": 1,
        "sku": "SKU-1",
        "nombre": "Producto",
        "stock": 20,
    }
    data.update(fields)
    return Product(**data)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def client(engine):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, email="ana@tienda.com", organizacion="Tienda Ana"):
    response = client.post(
        "/auth/registro",
        json={
            "nombre": "Ana Pérez",
            "email": email,
            "passwd": PASSWORD,
            "organizacion": organizacion,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client, email, password=PASSWORD) -> dict:
    response = client.post(
        "/auth/login", data={"username": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    register(client)
    return login(client, "ana@tienda.com")


@pytest.fixture
def make_user(client, admin_headers):
    """Crea un usuario con `rol` en la organización del admin y devuelve sus cabeceras."""

    def _make_user(rol: str, email: str | None = None) -> dict:
        email = email or f"{rol}@tienda.com"
        response = client.post(
            "/usuarios/",
            json={
                "nombre": f"Usuario {rol}",
                "email": email,
                "passwd": PASSWORD,
                "rol": rol,
            },
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return login(client, email)

    return _make_user


@pytest.fixture
def create_product(client, admin_headers):
    def _create_product(headers=None, **fields) -> dict:
        payload = {"sku": "ARR-1", "nombre": "Arroz 1kg", "stock": 20, "costo": 1.5, "precio": 2.0}
        payload.update(fields)
        response = client.post(
            "/productos/", json=payload, headers=headers or admin_headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create_product
