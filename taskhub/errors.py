import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


def failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def format_validation_errors(errors) -> str:
    parts = []
    for err in errors:
        # drop the "body"/"query"/"path" prefix
        loc = ".".join(str(p) for p in err.get("loc", ())[1:])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def register_exception_handlers(app: FastAPI, debug: bool = False):

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return failure(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return failure(status.HTTP_400_BAD_REQUEST, format_validation_errors(exc.errors()))

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.warning("Store error on %s %s: %s", request.method, request.url.path, exc)
        return failure(status.HTTP_400_BAD_REQUEST, str(getattr(exc, "orig", None) or exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            path = request.url.path
            if request.url.query:
                path = f"{path}?{request.url.query}"
            message = f"Ruta no encontrada: {path}"
        else:
            message = exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"message": message}},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"message": str(exc) or exc.__class__.__name__}
        if debug:
            body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": body})
