# FILE: app/api/exception_handlers.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.response import err
from app.services.credit_errors import (
    CreditValidationError,
    DataUnavailable,
    WriteFailed,
)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # exc.detail can be str/dict/list
        msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return err(msg=msg, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return err(msg="Validation error",
                   status_code=422,
                   code="VALIDATION",
                   details=[{
                       "loc": list(e.get("loc", ())),
                       "msg": e.get("msg")
                   } for e in exc.errors()])

    @app.exception_handler(CreditValidationError)
    async def credit_validation_handler(request: Request, exc: CreditValidationError) -> JSONResponse:
        return err(msg=exc.msg, status_code=exc.status_code, code="CREDIT_VALIDATION")

    @app.exception_handler(DataUnavailable)
    async def data_unavailable_handler(request: Request, exc: DataUnavailable) -> JSONResponse:
        return err(msg=str(exc), status_code=503, code="DATA_UNAVAILABLE")

    @app.exception_handler(WriteFailed)
    async def write_failed_handler(request: Request, exc: WriteFailed) -> JSONResponse:
        return err(msg=str(exc), status_code=502, code="WRITE_FAILED")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return err(msg="Internal server error", status_code=500)
