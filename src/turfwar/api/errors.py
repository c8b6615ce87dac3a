"""Exception handlers translating domain failures into JSON responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from turfwar.domain.enums import ErrorKind
from turfwar.domain.errors import TurfError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorKind.CAPACITY: status.HTTP_409_CONFLICT,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_CONTENT,
    ErrorKind.DEADLINE_EXCEEDED: status.HTTP_504_GATEWAY_TIMEOUT,
}


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TurfError)
    async def turf_error_handler(request: Request, exc: TurfError):  # type: ignore[override]
        code = STATUS_BY_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST)
        payload = {"detail": exc.message, "kind": str(exc.kind)}
        return JSONResponse(status_code=code, content=payload)

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        payload = {
            "detail": "validation_error",
            "kind": str(ErrorKind.VALIDATION),
            "errors": jsonable_encoder(exc.errors()),
        }
        return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, content=payload)

    @app.exception_handler(OperationalError)
    async def storage_exc_handler(request: Request, exc: OperationalError):  # type: ignore[override]
        logger.error("Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
        payload = {"detail": "storage unavailable", "kind": "storage_unavailable"}
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=payload)
