# FastAPI Application Entry Point: reference implementation of the remote records API
from fastapi import FastAPI
import httpx

# Configuration and Observability
from case_records_service.app.config import settings
from case_records_service.app.observability import setup_opentelemetry, logger

# Initialize OpenTelemetry
setup_opentelemetry(service_name=settings.SERVICE_NAME_API)

# Import instrumentors after OTel SDK is initialized
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

# Database connection
from case_records_service.infrastructure.database.connection import connect_to_mongo, close_mongo_connection

# API Routers
from case_records_service.app.api.v1.endpoints import health as health_router
from case_records_service.app.api.v1.endpoints import records as records_router
from case_records_service.app.api.v1.endpoints import chat as chat_router

# --- FastAPI Application Instance ---
app = FastAPI(
    title="Case Records Service",
    description="Stores case, document and chat record collections per tenant namespace.",
    version="0.1.0"
)

# --- Event Handlers for DB Connection & OTel Instrumentation ---
@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI application startup...")
    try:
        app.state.http_client = httpx.AsyncClient(timeout=settings.REMOTE_API_TIMEOUT_SECONDS)
        HTTPXClientInstrumentor().instrument()
        logger.info(f"HTTPX AsyncClient initialized with timeout {settings.REMOTE_API_TIMEOUT_SECONDS} and instrumented.")

        connect_to_mongo()
        logger.info("MongoDB connection established.")

        PymongoInstrumentor().instrument()
        logger.info("PyMongo instrumentation complete.")
    except Exception as e:
        # The health endpoint reports the database as disconnected; startup itself goes on.
        logger.error(f"Failed during startup: {e}", exc_info=True)

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI application shutdown...")

    if getattr(app.state, 'http_client', None):
        await app.state.http_client.aclose()
        logger.info("HTTPX AsyncClient closed.")

    close_mongo_connection()

FastAPIInstrumentor.instrument_app(app)
logger.info("FastAPI instrumentation complete.")

# Include API Routers
app.include_router(health_router.router)
app.include_router(records_router.router, prefix="/api/v1")
app.include_router(chat_router.router, prefix="/api/v1")

logger.info("API routers included. Application setup complete.")

# To run: uvicorn case_records_service.app.main:app --reload --port 8000
