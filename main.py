"""
Insurance policy administration backend
FastAPI application entry point
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database.connection import engine, AsyncSessionLocal, Base
from models import provider, policy, claim, kyc_document, identifier, chain_sync  # noqa: F401
from controllers import (
    provider_controller,
    policy_controller,
    claims_controller,
    kyc_controller,
    file_controller,
    did_controller,
    chain_controller,
    debug_controller,
)
from services.chain_service import init_chain
from services.identity_service import get_identity_service
from services.provider_service import seed_default_provider
from utils import settings
from utils.errors import ServiceError
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


# Create all tables
async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def bootstrap():
    """Issuer DID and placeholder provider, both idempotent"""
    identity = get_identity_service()
    async with AsyncSessionLocal() as db:
        logger.info("📝 Initializing identity gateway...")
        issuer = await identity.get_or_create_issuer(db)
        logger.info("   Issuer DID: %s", issuer.did)
        if settings.SEED_DEFAULT_PROVIDER:
            await seed_default_provider(db, identity)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.LOG_LEVEL)
    logger.info("🚀 Starting insurance backend...")
    await create_tables()
    await bootstrap()
    logger.info("⛓️  Initializing contracts...")
    init_chain()
    logger.info(
        "✅ Backend ready on port %s (environment: %s)",
        settings.PORT,
        settings.ENVIRONMENT,
    )
    yield
    # Shutdown
    logger.info("🔄 Backend shutting down")
    await engine.dispose()


async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message, "details": errors})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc)},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Insurance Policy Administration API",
        description="Providers, policies, claims and KYC with on-chain mirroring",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health Check
    @app.get("/health")
    async def health_check():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(provider_controller.router, prefix="/provider", tags=["Providers"])
    app.include_router(policy_controller.router, prefix="/policy", tags=["Policies"])
    app.include_router(claims_controller.router, prefix="/claim", tags=["Claims"])
    app.include_router(file_controller.router, prefix="/file", tags=["Files"])
    app.include_router(kyc_controller.router, prefix="/kyc", tags=["KYC"])
    app.include_router(did_controller.router, prefix="/did", tags=["DID"])
    app.include_router(chain_controller.router, prefix="/chain", tags=["Chain"])

    if settings.is_development():
        app.include_router(debug_controller.router, prefix="/debug", tags=["Debug"])

    # Error Handlers
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower(),
    )
