from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from datetime import datetime
from tupyme.dependencies import (
    get_now,
    get_product_store,
    require_permission,
)
from tupyme.logging_conf import get_logger
from tupyme.models.product import Product
from tupyme.models.user import User
from tupyme.schemas.product import (
    PaginatedProductResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from tupyme.services.constants import DEFAULT_CATEGORIA
from tupyme.services.movements import apply_movement
from tupyme.services.stock_status import classify_product
from tupyme.services.stores import ProductStore
from tupyme.utils.permissions import (
    AGREGAR_PRODUCTO,
    CREAR_AJUSTES,
    EDITAR_INVENTARIO,
    has_permission,
    role_label,
)
from tupyme.utils.validation import normalize_category, product_rule_errors

logger = get_logger(__name__)

router = APIRouter(prefix="/productos", tags=["Productos"])

EstadoStock = Literal["sin-stock", "poco-stock", "en-stock", "sobre-stock"]


def to_response(product: Product) -> dict:
    """Producto con su estado de stock calculado."""
    estado = classify_product(product)
    return {
        **product.model_dump(),
        "estado_stock": estado.label,
        "severidad": estado.severity,
    }


def resolve_category(
    store: ProductStore, categoria: Optional[str], id_categoria: Optional[int]
) -> tuple[str, Optional[int]]:
    """Devuelve (nombre, id) de la categoría; `id_categoria` tiene preferencia."""
    if id_categoria is not None:
        encontrada = store.find_category(id_categoria=id_categoria)
        if not encontrada:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La categoría especificada no existe.",
            )
        return encontrada.nombre, encontrada.id

    if not categoria or not categoria.strip():
        return DEFAULT_CATEGORIA, None

    nombre = normalize_category(categoria)
    encontrada = store.find_category(nombre=nombre)
    return (encontrada.nombre, encontrada.id) if encontrada else (nombre, None)


def check_rules(product: Product):
    errores = product_rule_errors(
        product.categoria,
        product.fecha_vencimiento,
        product.min_stock,
        product.max_stock,
    )
    if errores:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="; ".join(errores)
        )


@router.get("/", response_model=PaginatedProductResponse)
def get_products(
    store: ProductStore = Depends(get_product_store),
    limit: int = Query(10, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
    categoria: Optional[str] = Query(None),
    id_categoria: Optional[int] = Query(None),
    estado: Optional[EstadoStock] = Query(None),
):
    """Lista los productos de la organización.
    - `search` filtra por nombre o SKU.
    - `estado` filtra por estado de stock (`sin-stock`, `poco-stock`, `en-stock`, `sobre-stock`).
    """
    products = store.list(search=search, categoria=categoria, id_categoria=id_categoria)

    # El estado de stock se calcula, no se guarda: se filtra aquí
    if estado:
        products = [p for p in products if classify_product(p).key == estado]

    return {
        "data": [to_response(p) for p in products[offset : offset + limit]],
        "total": len(products),
        "limit": limit,
        "offset": offset,
    }


@router.get("/{id}", response_model=ProductResponse)
def get_product(id: int, store: ProductStore = Depends(get_product_store)):
    """Obtiene un producto de la organización por su ID."""
    product = store.get(id)
    if not product:
        raise HTTPException(status_code=404, detail="Producto no encontrado")
    return to_response(product)


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    product_data: ProductCreate,
    store: ProductStore = Depends(get_product_store),
    user: User = Depends(require_permission(AGREGAR_PRODUCTO)),
):
    """Crea un nuevo producto. El ID es el siguiente libre dentro de la organización."""

    # Verificar si el SKU ya existe en la organización
    if store.get_by_sku(product_data.sku):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="El SKU ya está registrado."
        )

    categoria, id_categoria = resolve_category(
        store, product_data.categoria, product_data.id_categoria
    )

    new_product = Product(
        organization_id=user.organization_id,
        id=store.next_id(),
        **product_data.model_dump(exclude={"categoria", "id_categoria"}),
        categoria=categoria,
        id_categoria=id_categoria,
    )
    check_rules(new_product)

    store.save(new_product)
    return to_response(new_product)


@router.put("/{id}", response_model=ProductResponse)
def update_product(
    id: int,
    product_update: ProductUpdate,
    store: ProductStore = Depends(get_product_store),
    user: User = Depends(require_permission(EDITAR_INVENTARIO)),
    now: datetime = Depends(get_now),
):
    """Actualiza un producto.
    - Un cambio de `stock` se registra como movimiento de `ajuste` y exige `motivo`.
    """
    product = store.get(id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado"
        )

    # Validar si el nuevo SKU ya existe en otro producto
    if product_update.sku and store.get_by_sku(product_update.sku, exclude_id=id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El SKU ya está en uso",
        )

    cambios = product_update.model_dump(
        exclude_unset=True, exclude={"stock", "motivo", "categoria", "id_categoria"}
    )
    for campo, valor in cambios.items():
        if campo in ("sku", "nombre") and valor is not None:
            valor = valor.strip() or None
        if campo in ("sku", "nombre", "formato", "costo", "precio") and valor is None:
            continue  # Campos obligatorios: null o vacío no borra el valor
        setattr(product, campo, valor)

    if "categoria" in product_update.model_fields_set or product_update.id_categoria:
        product.categoria, product.id_categoria = resolve_category(
            store, product_update.categoria, product_update.id_categoria
        )

    check_rules(product)

    # Cambio de stock → ajuste con motivo
    movement = None
    if product_update.stock is not None and product_update.stock != product.stock:
        if not has_permission(user.rol, CREAR_AJUSTES):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tienes permisos para ajustar el stock",
            )
        result = apply_movement(
            product,
            "ajuste",
            product_update.stock,
            product_update.motivo,
            actor_id=user.id,
            actor_role=role_label(user.rol),
            now=now,
        )
        if not result.ok:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=result.error.message
            )
        movement = result.movement

    store.save(product, movement)
    if movement is not None:
        logger.info(
            "Ajuste de stock del producto %s: %s → %s",
            product.id,
            movement.stock_antes,
            movement.stock_despues,
        )
    return to_response(product)


@router.delete("/{id}", response_model=ProductResponse)
def delete_product(
    id: int,
    store: ProductStore = Depends(get_product_store),
    user: User = Depends(require_permission(EDITAR_INVENTARIO)),
):
    """Elimina un producto y su historial de movimientos."""
    product = store.get(id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado"
        )

    deleted = to_response(product)
    store.delete(product)
    return deleted
