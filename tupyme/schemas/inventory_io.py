from typing import List, Literal
from pydantic import BaseModel


class ImportResponse(BaseModel):
    """Resultado de una importación. `errores` trae un mensaje por fila rechazada."""

    modo: Literal["add", "replace"]
    total_filas: int
    importados: int
    rechazados: int
    errores: List[str]
