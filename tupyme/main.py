from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from tupyme.logging_conf import get_logger
from tupyme.models.database import create_db_and_tables
from tupyme.routers import (
    alerts,
    auth,
    inventory_io,
    movements,
    product_categories,
    products,
    reports,
    users,
)
from fastapi.middleware.cors import CORSMiddleware  # CORS
from tupyme.routers.websocket import router as websocket_router
from tupyme.services.errors import StoreError
from tupyme.utils.getenv import get_list_env

logger = get_logger("tupyme")


# Crear la base de datos y las tablas al iniciar la aplicación
@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    logger.info("Base de datos lista")
    yield


app = FastAPI(title="TuPyme Inventario", lifespan=lifespan)

# Configuración CORS segura para cookies
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_list_env("CORS_ORIGINS", ["http://localhost:5173"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": exc.message},
    )


# Incluir routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(products.router)
app.include_router(product_categories.router)
app.include_router(movements.router)
app.include_router(alerts.router)
app.include_router(inventory_io.router)
app.include_router(reports.dashboard_router)
app.include_router(reports.router)
# Websocket
app.include_router(websocket_router)


@app.get("/")
def read_root():
    return {"message": "API funcionando correctamente"}
