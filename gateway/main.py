# gateway/main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.core.config import Settings, settings as default_settings
from gateway.core.errors import GatewayError, InternalError
from gateway.database.database import Database
from gateway.services.merchant_service import seed_test_merchant
from gateway.services.settlement import SettlementPolicy, SettlementWorker

logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# Lifespan events (startup/shutdown)
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    database: Database = app.state.database
    settlement: SettlementWorker = app.state.settlement

    # schema + readiness wait; blocking retries stay off the event loop
    await asyncio.to_thread(
        database.connect_with_retry,
        settings.DATABASE_CONNECT_RETRIES,
        settings.DATABASE_CONNECT_RETRY_DELAY,
    )
    logger.info("✓ Database initialized")

    if settings.SEED_TEST_MERCHANT:
        with database.SessionLocal() as db:
            seed_test_merchant(db)

    await settlement.start()

    yield

    logger.info("🔄 Starting graceful shutdown...")
    try:
        await settlement.shutdown(settings.SETTLEMENT_SHUTDOWN_TIMEOUT)
    except Exception as e:
        logger.error(f"Error stopping settlement worker: {e}", exc_info=True)
    database.dispose()
    logger.info("✅ Graceful shutdown complete")


# --- Error rendering: {"error": {"code", "description"}} ---

def _error_response(status_code: int, code: str, description: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "description": description}},
    )


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.description)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        description = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        description = "Invalid request"
    return _error_response(400, "BAD_REQUEST_ERROR", description)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _error_response(404, "NOT_FOUND_ERROR", "Endpoint not found")
    code = "INTERNAL_ERROR" if exc.status_code >= 500 else "BAD_REQUEST_ERROR"
    return _error_response(exc.status_code, code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    settlement: Optional[SettlementWorker] = None,
) -> FastAPI:
    settings = settings or default_settings
    database = database or Database(settings.DATABASE_URL)
    settlement = settlement or SettlementWorker(
        database.SessionLocal, SettlementPolicy.from_settings(settings)
    )

    fastapi_app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Simulated payment gateway: orders, UPI/card payments, async settlement",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    fastapi_app.state.settings = settings
    fastapi_app.state.database = database
    fastapi_app.state.settlement = settlement

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @fastapi_app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    fastapi_app.add_exception_handler(GatewayError, gateway_error_handler)
    fastapi_app.add_exception_handler(RequestValidationError, validation_error_handler)
    fastapi_app.add_exception_handler(StarletteHTTPException, http_error_handler)
    fastapi_app.add_exception_handler(Exception, unhandled_error_handler)

    # --- Register routers under the versioned prefix clients expect ---
    from gateway.routers import health, merchant_routes, orders_routes, payment_routes, testing_routes

    fastapi_app.include_router(health.router)
    fastapi_app.include_router(orders_routes.router, prefix=settings.API_PREFIX)
    fastapi_app.include_router(payment_routes.router, prefix=settings.API_PREFIX)
    fastapi_app.include_router(merchant_routes.router, prefix=settings.API_PREFIX)
    fastapi_app.include_router(testing_routes.router, prefix=settings.API_PREFIX)

    @fastapi_app.get("/")
    def root():
        return {"message": "Payment Gateway API is running"}

    return fastapi_app


app = create_app()
