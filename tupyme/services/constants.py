# Umbral de poco stock cuando el producto no define min_stock
DEFAULT_MIN_STOCK = 10

# Días de antelación para avisar de un vencimiento (inclusive)
DIAS_AVISO_VENCIMIENTO = 10

DEFAULT_FORMATO = "Unidad"
DEFAULT_CATEGORIA = "Sin categoría"

CATEGORIAS_OPTIONS = (
    "Bebidas",
    "Lácteos",
    "Carnes y Embutidos",
    "Congelados",
    "Panadería",
    "Cereales y Granos",
    "Enlatados",
    "Condimentos y Salsas",
    "Snacks y Dulces",
    "Limpieza del Hogar",
    "Higiene Personal",
    "Frutas y Vegetales",
)

CATEGORIAS_PERECEDERAS = (
    "Bebidas",
    "Lácteos",
    "Carnes y Embutidos",
    "Congelados",
    "Panadería",
    "Frutas y Vegetales",
)

FORMATO_OPTIONS = (
    "Unidad",
    "Libra (lb)",
    "Kilogramo (kg)",
    "Gramo (g)",
    "Litro (L)",
    "Mililitro (ml)",
    "Onza (oz)",
    "Paquete",
    "Bolsa",
    "Caja",
    "Botella",
    "Lata",
    "Pomo/Frasco",
    "Saco",
    "Bandeja",
    "Cubeta/Galón",
    "Display",
    "Six-pack",
)
