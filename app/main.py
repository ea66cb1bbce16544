import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from . import models  # noqa: F401  registers the tables on Base.metadata
from .api.endpoints import response, survey
from .clock import get_clock
from .database import create_db_and_tables, engine
from .exceptions import StoreError, SurveyAppError, ValidationError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# --- Lifecycle Events ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")
    await create_db_and_tables()
    yield
    logger.info("Application shutting down...")
    await engine.dispose()


# --- FastAPI app instance ---
app = FastAPI(title="Survey Platform Backend", version=API_VERSION, lifespan=lifespan)

# --- CORS middleware (needed for frontend access) ---
origins = config.allowed_origins()
logger.info("CORS: allowed origins %s", origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handlers ---
@app.exception_handler(SurveyAppError)
async def survey_app_error_handler(request: Request, exc: SurveyAppError):
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
):
    field_errors = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        field_errors.setdefault(location or "body", []).append(error["msg"])
    return await survey_app_error_handler(
        request, ValidationError(field_errors=field_errors)
    )


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "Persistence failure on %s %s: %s", request.method, request.url.path, exc
    )
    return await survey_app_error_handler(request, StoreError())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# --- API routes ---
app.include_router(survey.router, prefix="/api/surveys", tags=["surveys"])
app.include_router(response.router, prefix="/api/surveys", tags=["responses"])


@app.get("/")
async def read_root():
    return {"message": "Welcome to the Survey Platform backend!"}


@app.get("/api/health", status_code=status.HTTP_200_OK)
async def health_check():
    return {
        "success": True,
        "message": "Survey Platform API is running",
        "timestamp": get_clock().now().isoformat(),
        "version": API_VERSION,
    }
