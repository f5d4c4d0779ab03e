"""
Control de acceso por rol.

Roles disponibles: admin, warehouse (almacén), cashier (cajero) y seller
(vendedor). admin y warehouse tienen permisos elevados; solo admin ve los
reportes y gestiona usuarios.
"""

ROLES = ("admin", "warehouse", "cashier", "seller")

ROLE_LABELS = {
    "admin": "Administrador",
    "warehouse": "Almacén",
    "cashier": "Cajero",
    "seller": "Vendedor",
}

VER_ALERTAS = "ver_alertas"
VER_REPORTES = "ver_reportes"
EDITAR_INVENTARIO = "editar_inventario"
AGREGAR_PRODUCTO = "agregar_producto"
IMPORTAR_INVENTARIO = "importar_inventario"
EXPORTAR_INVENTARIO = "exportar_inventario"
CREAR_MOVIMIENTOS = "crear_movimientos"
CREAR_AJUSTES = "crear_ajustes"
GESTIONAR_USUARIOS = "gestionar_usuarios"

PERMISOS = {
    "admin": {
        VER_ALERTAS,
        VER_REPORTES,
        EDITAR_INVENTARIO,
        AGREGAR_PRODUCTO,
        IMPORTAR_INVENTARIO,
        EXPORTAR_INVENTARIO,
        CREAR_MOVIMIENTOS,
        CREAR_AJUSTES,
        GESTIONAR_USUARIOS,
    },
    "warehouse": {
        VER_ALERTAS,
        EDITAR_INVENTARIO,
        AGREGAR_PRODUCTO,
        IMPORTAR_INVENTARIO,
        EXPORTAR_INVENTARIO,
        CREAR_MOVIMIENTOS,
        CREAR_AJUSTES,
    },
    "cashier": {
        VER_ALERTAS,
        EDITAR_INVENTARIO,
        AGREGAR_PRODUCTO,
        CREAR_MOVIMIENTOS,
    },
    "seller": {
        CREAR_MOVIMIENTOS,
    },
}


def role_label(rol: str) -> str:
    return ROLE_LABELS.get(rol, "Usuario")


def has_permission(rol: str, permiso: str) -> bool:
    """Un rol desconocido recibe los permisos de vendedor (los mínimos)."""
    return permiso in PERMISOS.get(rol, PERMISOS["seller"])


def is_admin_user(user) -> bool:
    return user.rol == "admin"
