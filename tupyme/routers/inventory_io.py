"""
Importación y exportación del inventario:
- /inventario/importar → CSV o XLSX, en modo `add` (suma) o `replace` (reemplaza todo).
- /inventario/exportar → CSV con las columnas canónicas.
- /inventario/plantilla → plantilla vacía en CSV o XLSX (con listas desplegables).
"""

from typing import Literal
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from tupyme.dependencies import get_product_store, require_permission
from tupyme.logging_conf import get_logger
from tupyme.models.user import User
from tupyme.schemas.inventory_io import ImportResponse
from tupyme.services.reconcile import reconcile_import
from tupyme.services.stores import ProductStore
from tupyme.utils.permissions import EXPORTAR_INVENTARIO, IMPORTAR_INVENTARIO
from tupyme.utils.tabular import export_csv, parse_upload, template_csv, template_xlsx

logger = get_logger(__name__)

router = APIRouter(prefix="/inventario", tags=["Importar/Exportar"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/importar", response_model=ImportResponse)
def import_inventory(
    archivo: UploadFile = File(...),
    modo: Literal["add", "replace"] = Form("add"),
    store: ProductStore = Depends(get_product_store),
    user: User = Depends(require_permission(IMPORTAR_INVENTARIO)),
):
    """Importa productos desde un archivo.
    - Las filas con errores se descartan y se informan; el resto se importa.
    - En modo `replace`, si ninguna fila es válida el inventario no se toca.
    """
    try:
        rows = parse_upload(archivo.filename, archivo.content_type, archivo.file.read())
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        # openpyxl/pandas lanzan varios tipos de error con archivos corruptos
        logger.warning("Archivo de importación ilegible (%s): %s", archivo.filename, e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No se pudo leer el archivo. Verifica que sea un CSV o XLSX válido.",
        )

    if not rows:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El archivo no contiene filas de datos",
        )

    result = reconcile_import(rows, modo, store.list())

    if modo == "replace" and not result.accepted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "mensaje": "Ninguna fila es válida: el inventario no se ha reemplazado",
                "errores": result.errors,
            },
        )

    if result.accepted:
        if modo == "replace":
            store.replace_all(result.accepted)
        else:
            store.add_all(result.accepted)

    logger.info(
        "Importación (%s) de la organización %s: %s aceptadas, %s rechazadas",
        modo,
        store.organization_id,
        len(result.accepted),
        len(result.errors),
    )

    return ImportResponse(
        modo=modo,
        total_filas=len(rows),
        importados=len(result.accepted),
        rechazados=len(result.errors),
        errores=result.errors,
    )


@router.get("/exportar")
def export_inventory(
    store: ProductStore = Depends(get_product_store),
    user: User = Depends(require_permission(EXPORTAR_INVENTARIO)),
):
    """Descarga el inventario completo en CSV."""
    return Response(
        content=export_csv(store.list()),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="inventario.csv"'},
    )


@router.get("/plantilla")
def download_template(
    formato: Literal["csv", "xlsx"] = Query("xlsx"),
    user: User = Depends(require_permission(IMPORTAR_INVENTARIO)),
):
    """Plantilla vacía para importar productos."""
    if formato == "csv":
        return Response(
            content=template_csv(),
            media_type="text/csv; charset=utf-8",
            headers={
                "Content-Disposition": 'attachment; filename="plantilla_inventario.csv"'
            },
        )
    return Response(
        content=template_xlsx(),
        media_type=XLSX_MEDIA_TYPE,
        headers={
            "Content-Disposition": 'attachment; filename="plantilla_inventario.xlsx"'
        },
    )
