import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from avboq.api.routes import router
from avboq.core.config import settings
from avboq.core.exceptions import BoqError
from avboq.core.logging import setup_logging
from avboq.services.llm import JSONParsingError
from avboq.services.llm import LLMError

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if not settings.gemini_api_key:
        # Startup continues; model-backed endpoints fail until the key is set
        logger.error("GEMINI_API_KEY is missing. Please set GEMINI_API_KEY (or API_KEY) in your environment variables.")
    logger.info("Application started successfully")
    yield


app = FastAPI(title="AV BOQ Generator", lifespan=lifespan)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP exception: {exc.detail} (status: {exc.status_code})")
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # 'ctx' may hold exception instances that JSONResponse cannot encode
    return [{key: value for key, value in err.items() if key != "ctx"} for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error("Request validation failed: %s", exc.errors(), exc_info=False)
    return JSONResponse(
        {"error": "Input validation failed", "details": jsonable_errors(exc)},
        status_code=422,
    )


@app.exception_handler(BoqError)
async def boq_exception_handler(_request: Request, exc: BoqError) -> JSONResponse:
    logger.error(f"Service error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.exception_handler(LLMError)
async def llm_exception_handler(_request: Request, exc: LLMError) -> JSONResponse:
    logger.error(f"LLM error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.exception_handler(JSONParsingError)
async def jsonparsing_exception_handler(_request: Request, exc: JSONParsingError) -> JSONResponse:
    logger.error(f"JSON parsing error: {str(exc)}")
    return JSONResponse({"error": str(exc)}, status_code=500)


@app.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    logger.info("Health check endpoint called")
    return {"status": "ok"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)
app.include_router(router)
