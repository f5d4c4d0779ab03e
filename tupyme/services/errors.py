"""Errores de dominio del inventario.

Las violaciones esperadas (validación, invariantes) no se lanzan: los
componentes las devuelven como valor dentro de su resultado para que quien
llama decida cómo mostrarlas. Solo `StoreError` se lanza, y se propaga tal cual.
"""


class InventoryError(Exception):
    """Base de los errores de dominio."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class FieldValidationError(InventoryError):
    """Dato obligatorio ausente, número/fecha mal formado o umbrales incoherentes."""


class InvariantViolation(InventoryError):
    """La operación dejaría el stock en negativo."""


class MissingReasonError(InventoryError):
    """Ajuste de stock sin motivo."""


class StoreError(InventoryError):
    """Fallo del almacenamiento (conexión, permisos, integridad)."""
