import os

# Environment
ENV = os.getenv("APP_ENV", "production").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "").split(",")
    if origin.strip()
]

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./pinboard.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() in ("1", "true", "yes")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "5"))
DB_POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", "10"))  # seconds to wait for a connection
DB_POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "1800"))  # seconds before an idle connection is replaced
DB_SHUTDOWN_TIMEOUT = float(os.getenv("DB_SHUTDOWN_TIMEOUT", "10"))

# Identity provider tokens. Unset means callers are trusted.
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET") or None
AUTH_JWT_ALGORITHM = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
AUTH_USERNAME_CLAIM = os.getenv("AUTH_USERNAME_CLAIM", "name")

# Pagination
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
MAX_PAGE = int(os.getenv("MAX_PAGE", "10000"))
