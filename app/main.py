import os
import sys
import time
import logging
import logging.config
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.security import auth_enabled
from app.db.bootstrap import bootstrap
from app.db.session import database, get_db
from app.api.errors import register_exception_handlers
from app.api.routes import boards, feed, follows, pins, search, system, users

# Load logging config if present
if os.path.exists("logging.conf"):
    logging.config.fileConfig("logging.conf", disable_existing_loggers=False)
else:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
logger = logging.getLogger("root")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic: refuse to serve against a partially migrated schema
    try:
        added = await bootstrap(database.engine)
    except Exception:
        logger.critical("Schema bootstrap failed, not starting", exc_info=True)
        await database.dispose()
        raise
    if added:
        logger.info(f"Added columns: {', '.join(added)}")
    logger.info("Database initialized")

    if not auth_enabled():
        logger.warning(
            "AUTH_JWT_SECRET is not set: request usernames are trusted without verification"
        )

    yield  # App runs here

    logger.info("Shutting down...")
    await database.dispose(timeout=config.DB_SHUTDOWN_TIMEOUT)


# Create FastAPI app with lifespan
app = FastAPI(
    title="Pinboard API",
    version="1.0",
    lifespan=lifespan,
)

# Dev-only CORS settings
if config.ENV == "development":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("CORS allowed for development environment")
elif config.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
else:
    logger.info("Running in production environment - CORS restricted")


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} {response.status_code} completed in {process_time:.2f} ms"
    )
    return response


register_exception_handlers(app)

# API routes
app.include_router(pins.router)
app.include_router(boards.router)
app.include_router(feed.router)
app.include_router(follows.router)
app.include_router(users.router)
app.include_router(search.router)
app.include_router(system.router)


@app.api_route("/api/health", methods=["GET", "HEAD"])
async def health(db: AsyncSession = Depends(get_db)):
    status = {
        "api": "ok",
        "database": None,
        "sessions_in_flight": database.in_flight,
    }

    http_status = 200

    # --- Database check ---
    try:
        await db.execute(text("SELECT 1"))
        status["database"] = "connected"
    except Exception as e:
        logger.warning(f"Health check could not reach the database: {e}")
        status["database"] = "unreachable"
        http_status = 503

    return JSONResponse(content=status, status_code=http_status)
