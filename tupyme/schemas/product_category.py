from pydantic import BaseModel, Field
from typing import List, Optional

class CategoryBase(BaseModel):
    nombre: str = Field(..., min_length=3, max_length=60)

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(BaseModel):
    nombre: Optional[str] = Field(None, min_length=3, max_length=60)

class CategoryResponse(CategoryBase):
    id: int

    class Config:
        from_attributes = True

class PaginatedCategoryResponse(BaseModel):
    data: List[CategoryResponse]
    total: int
    limit: int
    offset: int

class CategoryOptions(BaseModel):
    """Listas fijas que usan los formularios y la plantilla de importación."""

    categorias: List[str]
    perecederas: List[str]
    formatos: List[str]
