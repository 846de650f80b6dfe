import logging
import time
from datetime import datetime, timezone
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kasir.core.config import get_settings
from kasir.core.exceptions import AppError
from kasir.core.logging import configure_logging
from kasir.routers.auth import router as auth_router
from kasir.routers.carts import router as carts_router
from kasir.routers.health import router as health_router
from kasir.routers.products import router as products_router
from kasir.routers.transactions import router as transactions_router
from kasir.routers.users import router as users_router
from kasir.schemas.common import ErrorResponse

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Point-of-sale API - Outlets, carts, and cash or QRIS checkout.",
    version="0.1.0",
)


def error_response(request: Request, status_code: int, message: str, error: Any = None) -> JSONResponse:
    """Render the standard failure envelope."""
    body = ErrorResponse(
        statusCode=status_code,
        message=message,
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=request.url.path,
        error=jsonable_encoder(error),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return error_response(request, exc.status_code, exc.message, exc.error)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(request, 400, "Validation Error", exc.errors())


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return error_response(request, 500, "Internal Server Error")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    logger.info("[REQUEST] %s %s", request.method, request.url.path)
    response = await call_next(request)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        "[RESPONSE] %s %s %s - %dms",
        request.method, request.url.path, response.status_code, elapsed_ms,
    )
    return response


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(carts_router)
app.include_router(transactions_router)
app.include_router(users_router)
app.include_router(products_router)


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    uvicorn.run("kasir.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.DEBUG)
