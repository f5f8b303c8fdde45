"""usermgmt: user management REST API.

FastAPI entry point with lifespan management, middleware and CORS.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.router import api_router
from .config import DEFAULT_SECRET_KEY
from .database import close_engine, create_tables, ping
from .dependencies import get_app_config
from .middleware.error_handler import register_error_handlers
from .middleware.request_id import RequestIDMiddleware
from .middleware.security_headers import SecurityHeadersMiddleware
from .utils.logging import get_logger, setup_logging

config = get_app_config()
setup_logging(
    debug=config.debug,
    log_dir=config.log_dir,
    log_max_bytes=config.log_max_bytes,
    log_backup_count=config.log_backup_count,
)
logger = get_logger("usermgmt.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("usermgmt_starting", host=config.host, port=config.port)

    if config.secret_key == DEFAULT_SECRET_KEY:
        if not config.debug:
            raise RuntimeError(
                "INSECURE_SECRET_KEY: default secret_key detected in production mode. "
                "Set a strong, unique SECRET_KEY in .env before deploying."
            )
        logger.warning("insecure_secret_key", hint="set SECRET_KEY in .env")

    await create_tables(config)

    yield

    await close_engine()
    logger.info("usermgmt_stopped")


app = FastAPI(
    title="usermgmt",
    description="User management API with token-gated account administration",
    version=__version__,
    lifespan=lifespan,
)

register_error_handlers(app)

# The browser front end is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origin_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

app.add_middleware(SecurityHeadersMiddleware)

# Request ID: added LAST so it runs FIRST
app.add_middleware(RequestIDMiddleware)

app.include_router(api_router)


@app.get("/health")
async def health():
    """Liveness check including a database ping."""
    database_ok = await ping(config)
    return {
        "name": config.app_name,
        "version": __version__,
        "status": "healthy" if database_ok else "degraded",
        "database": "ok" if database_ok else "unreachable",
    }


def main():
    """Run the usermgmt server."""
    uvicorn.run(
        "usermgmt.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
