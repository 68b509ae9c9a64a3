"""
Sealed Catalog Matcher API.

Marketplace mapping (TCGplayer, CardTrader) and UPC reconciliation for
the sealed product catalog. Run with `python main.py` or
`uvicorn main:app`.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import structlog

from config import settings, check_connection
from exceptions import AppError

# stdlib logging carries structlog output; its level gates filter_by_level
logging.basicConfig(format="%(message)s", level=getattr(logging, settings.log_level))

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)


def matching_config() -> dict:
    """Matching knobs currently in effect, for startup logs and /health."""
    return {
        "tcgplayer_policy": settings.tcgplayer_mapping_policy.value,
        "cardtrader_policy": settings.cardtrader_mapping_policy.value,
        "cardtrader_configured": settings.cardtrader_configured,
        "upc_match_threshold": settings.upc_match_threshold,
        "mapping_delay_seconds": settings.mapping_delay_seconds,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log configuration and verify the catalog store is reachable."""
    logger.info(
        "matcher_starting",
        environment=settings.environment,
        **matching_config()
    )

    if not settings.cardtrader_configured:
        logger.warning("cardtrader_jwt_missing", effect="cardtrader searches will fail")

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "catalog_store_connected",
            products=db_status["products_count"],
            staged_candidates=db_status["staged_candidates_count"]
        )
    else:
        logger.error("catalog_store_unreachable", error=db_status.get("error"))

    yield

    logger.info("matcher_stopping")


app = FastAPI(
    title="Sealed Catalog Matcher",
    description="Marketplace mapping and UPC reconciliation for a sealed product catalog",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# ===================
# ROUTES
# ===================

@app.get("/health")
def health_check():
    """Catalog store reachability plus the active matching configuration."""
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "database": db_status,
        "matching": matching_config(),
    }


@app.get("/")
def root():
    return {
        "name": "Sealed Catalog Matcher API",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else None,
        "health": "/health",
        "endpoints": {
            "mapping": "/api/mapping",
            "upc": "/api/upc"
        },
        "marketplaces": ["tcgplayer", "cardtrader"],
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """AppErrors escaping a route keep their own code and status."""
    logger.warning(
        "app_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Anything else becomes a 500 with the standard error body."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


# ===================
# INCLUDE ROUTERS
# ===================
from routes import mapping_router, upc_router

app.include_router(mapping_router, prefix="/api/mapping", tags=["Mapping"])
app.include_router(upc_router, prefix="/api/upc", tags=["UPC"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
