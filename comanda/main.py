"""
Comanda - Backend API
Inventario, pedidos y cobros con MercadoPago para restaurantes
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from comanda.api import auth, inventory, items, mercadopago, orders, products, tags
from comanda.core.config import settings
from comanda.core.database import get_db_connection_with_retry

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Every error body is `{"error": "<message>"}`"""
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


# Include API routers
app.include_router(inventory.router, prefix="/api/inventory", tags=["Inventory"])
app.include_router(items.router, prefix="/api/items", tags=["Items"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(tags.router, prefix="/api/tags", tags=["Tags"])
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(mercadopago.router, prefix="/api/mercadopago", tags=["MercadoPago"])


@app.get("/")
async def root():
    """Endpoint raíz - Verificación de estado de la API"""
    return {
        "message": "Comanda API",
        "status": "online",
        "version": settings.API_VERSION,
    }


@app.get("/health")
async def health():
    """Health check endpoint para monitoreo - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Fast check, no retries
        conn = get_db_connection_with_retry(max_retries=1, retry_delay=0.5)
        cursor = conn.cursor()

        db_start = time.time()
        cursor.execute("SELECT 1")
        cursor.fetchone()
        db_latency_ms = round((time.time() - db_start) * 1000, 2)

        cursor.close()
        conn.close()
        db_status = "connected"
    except Exception as e:
        logger.warning(f"Health check database failure: {e}")
        db_status = "disconnected"
        db_error = str(e)

    total_latency_ms = round((time.time() - start_time) * 1000, 2)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "comanda-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
        },
        "total_latency_ms": total_latency_ms,
    }
