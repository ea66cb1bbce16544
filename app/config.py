# app/config.py
import os
from dotenv import load_dotenv

# Load environment variables from the .env file in the project root
# (works even when config.py is only imported indirectly, e.g. from alembic)
dotenv_path = os.path.join(os.path.dirname(__file__), "..", ".env")
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)
else:
    load_dotenv()


DATABASE_URL = os.getenv("DATABASE_URL")
if DATABASE_URL is None:
    # Fallback to a local SQLite database next to the package
    sqlite_db_path = os.path.join(os.path.dirname(__file__), "survey_platform.db")
    DATABASE_URL = f"sqlite+aiosqlite:///{sqlite_db_path}"

# echo=True prints every SQL statement SQLAlchemy emits. Keep it off in production.
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

FRONTEND_URL = os.getenv("FRONTEND_URL", "https://survey.messageboost.ai").rstrip("/")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DEFAULT_PER_PAGE = int(os.getenv("DEFAULT_PER_PAGE", "15"))
MAX_PER_PAGE = int(os.getenv("MAX_PER_PAGE", "100"))

# --- CORS ---
FALLBACK_ORIGINS = [
    "http://127.0.0.1:5173",
    "http://localhost:5173",
    "http://localhost:3000",
]


def allowed_origins():
    env_origins = os.getenv("BACKEND_ALLOWED_ORIGINS")
    if env_origins:
        origins = [origin.strip() for origin in env_origins.split(",") if origin.strip()]
        if origins:
            return origins
    return FALLBACK_ORIGINS
