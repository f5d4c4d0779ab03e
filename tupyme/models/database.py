from sqlmodel import SQLModel, create_engine, Session
from tupyme.utils.getenv import get_bool_env, get_required_env

# Conectar a la base de datos existente
DATABASE_URL = get_required_env("DATABASE_URL")

# SQLite necesita compartir la conexión entre hilos del servidor
connect_args = (
    {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(
    DATABASE_URL, echo=get_bool_env("SQL_ECHO"), connect_args=connect_args
)


def get_db():
    """Obtiene una sesión de la base de datos."""
    with Session(engine) as session:
        yield session


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)
