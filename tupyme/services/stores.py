"""
Acceso a datos por organización.

Cada store recibe la sesión y el `organization_id` del usuario autenticado, así
ninguna consulta puede leer ni escribir filas de otra organización. Los errores
de SQLAlchemy se convierten en `StoreError` tras deshacer la transacción.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import and_, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from tupyme.logging_conf import get_logger
from tupyme.models.movement import Movement
from tupyme.models.product import Product
from tupyme.models.product_category import ProductCategory
from tupyme.models.user import User
from tupyme.services.errors import StoreError

logger = get_logger(__name__)

DB_ERROR = "Error de conexión con la base de datos"


@contextmanager
def db_errors(db: Session, detail: str = DB_ERROR):
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s: %s", detail, e)
        raise StoreError(detail) from e


class ProductStore:
    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def _select(self):
        return select(Product).where(Product.organization_id == self.organization_id)

    def list(
        self,
        search: Optional[str] = None,
        categoria: Optional[str] = None,
        id_categoria: Optional[int] = None,
    ) -> List[Product]:
        statement = self._select()
        if search:
            # Filtra por nombre o sku (mayúsculas o minúsculas)
            search_like = f"%{search.lower()}%"
            statement = statement.where(
                func.lower(Product.nombre).like(search_like)
                | func.lower(Product.sku).like(search_like)
            )
        if categoria:
            statement = statement.where(
                func.lower(Product.categoria) == categoria.strip().lower()
            )
        if id_categoria:
            statement = statement.where(Product.id_categoria == id_categoria)

        with db_errors(self.db):
            return list(self.db.exec(statement.order_by(Product.id)).all())

    def get(self, product_id: int) -> Optional[Product]:
        with db_errors(self.db):
            return self.db.exec(self._select().where(Product.id == product_id)).first()

    def get_by_sku(self, sku: str, exclude_id: Optional[int] = None) -> Optional[Product]:
        statement = self._select().where(func.lower(Product.sku) == sku.lower())
        if exclude_id is not None:
            statement = statement.where(Product.id != exclude_id)
        with db_errors(self.db):
            return self.db.exec(statement).first()

    def next_id(self) -> int:
        with db_errors(self.db):
            max_id = self.db.exec(
                select(func.max(Product.id)).where(
                    Product.organization_id == self.organization_id
                )
            ).first()
        return (max_id or 0) + 1

    def find_category(
        self, nombre: Optional[str] = None, id_categoria: Optional[int] = None
    ) -> Optional[ProductCategory]:
        return CategoryStore(self.db, self.organization_id).find(nombre, id_categoria)

    def save(self, product: Product, movement: Optional[Movement] = None) -> Product:
        """Crea o actualiza el producto; si hay movimiento va en la misma transacción."""
        product.organization_id = self.organization_id
        with db_errors(self.db):
            self.db.add(product)
            if movement is not None:
                movement.organization_id = self.organization_id
                self.db.add(movement)
            self.db.commit()
            self.db.refresh(product)
        return product

    def delete(self, product: Product) -> None:
        """Elimina el producto y su historial de movimientos."""
        with db_errors(self.db, "Error al eliminar el producto"):
            self.db.execute(
                delete(Movement).where(
                    Movement.organization_id == self.organization_id,
                    Movement.product_id == product.id,
                )
            )
            self.db.delete(product)
            self.db.commit()

    def _link_categories(self, products: Iterable[Product]) -> List[Product]:
        categorias = {
            c.nombre.lower(): c.id
            for c in CategoryStore(self.db, self.organization_id).list()
        }
        products = list(products)
        for product in products:
            product.organization_id = self.organization_id
            product.id_categoria = categorias.get(product.categoria.lower())
        return products

    def add_all(self, products: Iterable[Product]) -> int:
        with db_errors(self.db, "Error al importar el inventario"):
            products = self._link_categories(products)
            self.db.add_all(products)
            self.db.commit()
        return len(products)

    def replace_all(self, products: Iterable[Product]) -> int:
        """Sustituye el catálogo completo (y su historial) en una sola transacción."""
        with db_errors(self.db, "Error al importar el inventario"):
            products = self._link_categories(products)
            # Los productos nuevos reutilizan las claves de los borrados
            for obj in list(self.db.identity_map.values()):
                if isinstance(obj, (Product, Movement)):
                    self.db.expunge(obj)
            self.db.execute(
                delete(Movement)
                .where(Movement.organization_id == self.organization_id)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                delete(Product)
                .where(Product.organization_id == self.organization_id)
                .execution_options(synchronize_session=False)
            )
            self.db.add_all(products)
            self.db.commit()
        return len(products)


class MovementStore:
    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def _joined(self):
        """Movimientos con nombre/sku del producto y nombre del usuario."""
        return (
            select(Movement, Product.nombre, Product.sku, User.nombre)
            .join(
                Product,
                and_(
                    Product.organization_id == Movement.organization_id,
                    Product.id == Movement.product_id,
                ),
                isouter=True,
            )
            .join(User, Movement.id_usuario == User.id, isouter=True)
            .where(Movement.organization_id == self.organization_id)
        )

    def append(self, movement: Movement, product: Optional[Product] = None) -> Movement:
        """Guarda el movimiento junto con el nuevo stock del producto."""
        movement.organization_id = self.organization_id
        with db_errors(self.db, "Error al registrar el movimiento"):
            if product is not None:
                self.db.add(product)
            self.db.add(movement)
            self.db.commit()
            self.db.refresh(movement)
        return movement

    def list(
        self,
        limit: int = 10,
        offset: int = 0,
        search: Optional[str] = None,
        tipo: Optional[str] = None,
        fecha_desde: Optional[datetime] = None,
        fecha_hasta: Optional[datetime] = None,
        product_id: Optional[int] = None,
    ) -> tuple[List, int]:
        """Devuelve (filas, total) ordenadas de la más reciente a la más antigua."""
        statement = self._joined()
        if search:
            search_like = f"%{search.lower()}%"
            statement = statement.where(
                func.lower(Product.nombre).like(search_like)
                | func.lower(Product.sku).like(search_like)
                | func.lower(Movement.motivo).like(search_like)
            )
        if tipo:
            statement = statement.where(Movement.tipo == tipo)
        if fecha_desde:
            statement = statement.where(Movement.fecha >= fecha_desde)
        if fecha_hasta:
            statement = statement.where(Movement.fecha < fecha_hasta)
        if product_id:
            statement = statement.where(Movement.product_id == product_id)

        with db_errors(self.db):
            total = (
                self.db.exec(
                    select(func.count()).select_from(statement.subquery())
                ).first()
                or 0
            )
            rows = self.db.exec(
                statement.order_by(Movement.fecha.desc(), Movement.id_mov.desc())
                .limit(limit)
                .offset(offset)
            ).all()
        return list(rows), total

    def get(self, id_mov: int):
        with db_errors(self.db):
            return self.db.exec(
                self._joined().where(Movement.id_mov == id_mov)
            ).first()

    def between(self, desde: datetime, hasta: datetime) -> List[Movement]:
        statement = select(Movement).where(
            Movement.organization_id == self.organization_id,
            Movement.fecha >= desde,
            Movement.fecha < hasta,
        )
        with db_errors(self.db):
            return list(self.db.exec(statement.order_by(Movement.fecha.desc())).all())

    def count_by_type(self) -> dict[str, int]:
        statement = (
            select(Movement.tipo, func.count())
            .where(Movement.organization_id == self.organization_id)
            .group_by(Movement.tipo)
        )
        with db_errors(self.db):
            resultados = self.db.exec(statement).all()
        conteo = {"entrada": 0, "salida": 0, "ajuste": 0}
        for tipo, cantidad in resultados:
            if tipo in conteo:
                conteo[tipo] = cantidad
        return conteo


class CategoryStore:
    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def _select(self):
        return select(ProductCategory).where(
            ProductCategory.organization_id == self.organization_id
        )

    def list(self, search: Optional[str] = None) -> List[ProductCategory]:
        statement = self._select()
        if search:
            statement = statement.where(
                func.lower(ProductCategory.nombre).like(f"%{search.lower()}%")
            )
        with db_errors(self.db):
            return list(self.db.exec(statement.order_by(ProductCategory.nombre)).all())

    def find(
        self, nombre: Optional[str] = None, id_categoria: Optional[int] = None
    ) -> Optional[ProductCategory]:
        if id_categoria is not None:
            statement = self._select().where(ProductCategory.id == id_categoria)
        elif nombre:
            statement = self._select().where(
                func.lower(ProductCategory.nombre) == nombre.strip().lower()
            )
        else:
            return None
        with db_errors(self.db):
            return self.db.exec(statement).first()

    def save(self, categoria: ProductCategory) -> ProductCategory:
        categoria.organization_id = self.organization_id
        with db_errors(self.db, "Error al guardar la categoría"):
            self.db.add(categoria)
            self.db.commit()
            self.db.refresh(categoria)
        return categoria

    def rename(self, categoria: ProductCategory, nombre: str) -> ProductCategory:
        """Renombra la categoría y el texto de categoría de sus productos."""
        with db_errors(self.db, "Error al actualizar la categoría"):
            productos = self.db.exec(
                select(Product).where(
                    Product.organization_id == self.organization_id,
                    Product.id_categoria == categoria.id,
                )
            ).all()
            for producto in productos:
                producto.categoria = nombre
                self.db.add(producto)
            categoria.nombre = nombre
            self.db.add(categoria)
            self.db.commit()
            self.db.refresh(categoria)
        return categoria

    def in_use(self, categoria: ProductCategory) -> bool:
        statement = select(Product.id).where(
            Product.organization_id == self.organization_id,
            (Product.id_categoria == categoria.id)
            | (func.lower(Product.categoria) == categoria.nombre.lower()),
        )
        with db_errors(self.db):
            return self.db.exec(statement).first() is not None

    def delete(self, categoria: ProductCategory) -> None:
        with db_errors(self.db, "Error al eliminar la categoría"):
            self.db.delete(categoria)
            self.db.commit()


class UserStore:
    """Usuarios de una organización. El email es único en todo el sistema."""

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id

    def list(
        self,
        limit: int = 10,
        offset: int = 0,
        search: Optional[str] = None,
        activo: Optional[bool] = None,
    ) -> tuple[List[User], int]:
        statement = select(User).where(User.organization_id == self.organization_id)
        if activo is not None:
            statement = statement.where(User.activo == activo)
        if search:
            search_like = f"%{search.lower()}%"
            statement = statement.where(
                func.lower(User.nombre).like(search_like)
                | func.lower(User.email).like(search_like)
            )

        with db_errors(self.db):
            total = (
                self.db.exec(
                    select(func.count()).select_from(statement.subquery())
                ).first()
                or 0
            )
            users = self.db.exec(
                statement.order_by(User.nombre).limit(limit).offset(offset)
            ).all()
        return list(users), total

    def get(self, user_id: int) -> Optional[User]:
        statement = select(User).where(
            User.id == user_id, User.organization_id == self.organization_id
        )
        with db_errors(self.db):
            return self.db.exec(statement).first()

    def email_in_use(self, email: str, exclude_id: Optional[int] = None) -> bool:
        statement = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            statement = statement.where(User.id != exclude_id)
        with db_errors(self.db):
            return self.db.exec(statement).first() is not None

    def save(self, user: User) -> User:
        user.organization_id = self.organization_id
        with db_errors(self.db, "Error interno al guardar el usuario."):
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        return user
