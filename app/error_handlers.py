from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.utils.log import logger


def error_body(status_code: int, message, details=None) -> dict:
    error = {"status_code": status_code, "message": message}
    if details is not None:
        error["details"] = details
    return {"error": error}


async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        error_body(exc.status_code, exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation failed for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        error_body(422, "Invalid request", jsonable_encoder(exc.errors())),
        status_code=422,
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse(error_body(500, "Gremlins."), status_code=500)


def register_error_handlers(app: FastAPI) -> None:
    # handlers are typed for Exception; the narrower exception types are fine
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
