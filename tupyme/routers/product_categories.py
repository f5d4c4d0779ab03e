from tupyme.utils.validation import normalize_category
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from tupyme.models.product_category import ProductCategory
from tupyme.schemas.product_category import (
    CategoryCreate,
    CategoryOptions,
    CategoryUpdate,
    CategoryResponse,
    PaginatedCategoryResponse,
)
from tupyme.dependencies import get_category_store, require_permission
from tupyme.routers.auth import get_current_user
from tupyme.services.constants import (
    CATEGORIAS_OPTIONS,
    CATEGORIAS_PERECEDERAS,
    FORMATO_OPTIONS,
)
from tupyme.services.stores import CategoryStore
from tupyme.utils.permissions import EDITAR_INVENTARIO

router = APIRouter(prefix="/categorias", tags=["Categorías de Producto"])


@router.get("/", response_model=PaginatedCategoryResponse)
def list_categories(
    store: CategoryStore = Depends(get_category_store),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None),
):
    categorias = store.list(search)
    return {
        "data": categorias[offset : offset + limit],
        "total": len(categorias),
        "limit": limit,
        "offset": offset,
    }


@router.get("/opciones", response_model=CategoryOptions)
def category_options(user=Depends(get_current_user)):
    """Categorías fijas, cuáles exigen fecha de vencimiento y formatos conocidos."""
    return {
        "categorias": list(CATEGORIAS_OPTIONS),
        "perecederas": list(CATEGORIAS_PERECEDERAS),
        "formatos": list(FORMATO_OPTIONS),
    }


@router.post("/", response_model=CategoryResponse, status_code=201)
def create_category(
    data: CategoryCreate,
    store: CategoryStore = Depends(get_category_store),
    user=Depends(require_permission(EDITAR_INVENTARIO)),
):
    nombre = normalize_category(data.nombre)
    if store.find(nombre=nombre):
        raise HTTPException(400, detail="Ya existe una categoría con ese nombre")

    return store.save(ProductCategory(nombre=nombre))


@router.put("/{id}", response_model=CategoryResponse)
def update_category(
    id: int,
    data: CategoryUpdate,
    store: CategoryStore = Depends(get_category_store),
    user=Depends(require_permission(EDITAR_INVENTARIO)),
):
    categoria = store.find(id_categoria=id)
    if not categoria:
        raise HTTPException(404, detail="Categoría no encontrada")

    if not data.nombre:
        return categoria

    nombre = normalize_category(data.nombre)
    existente = store.find(nombre=nombre)
    if existente and existente.id != id:
        raise HTTPException(400, detail="Ya existe otra categoría con ese nombre")

    return store.rename(categoria, nombre)


@router.delete("/{id}", response_model=CategoryResponse)
def delete_category(
    id: int,
    store: CategoryStore = Depends(get_category_store),
    user=Depends(require_permission(EDITAR_INVENTARIO)),
):
    categoria = store.find(id_categoria=id)
    if not categoria:
        raise HTTPException(404, detail="Categoría no encontrada")

    # Validar que no haya productos asociados
    if store.in_use(categoria):
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail="No se puede eliminar esta categoría porque tiene productos asociados",
        )

    deleted = CategoryResponse.model_validate(categoria)
    store.delete(categoria)
    return deleted
