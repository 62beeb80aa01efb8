# FILE: app/api/response.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _respond(payload: Dict[str, Any], status_code: int) -> JSONResponse:
    # money leaves as "123.40" strings, dates as ISO text
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def ok(
    data: Any = None,
    *,
    meta: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
) -> JSONResponse:
    """
    Body of every credit endpoint that succeeds:
    {"ok": true, "data": <ledgers | statement | payment ...>, "meta": {...}}

    meta is left out when None; list endpoints put paging and stream warnings
    there.
    """
    payload: Dict[str, Any] = {"ok": True, "data": data}
    if meta is not None:
        payload["meta"] = meta
    return _respond(payload, status_code)


def err(
    msg: str = "Something went wrong",
    *,
    status_code: int = 400,
    code: Optional[str] = None,
    details: Any = None,
) -> JSONResponse:
    """
    {"ok": false, "error": {"msg": ..., "code": ..., "details": ...}}

    msg is what the cashier sees ("Payment amount cannot exceed balance ...").
    """
    return _respond(
        {
            "ok": False,
            "error": {"msg": msg, "code": code, "details": details},
        },
        status_code,
    )


def page_meta(pg: Any, **extra: Any) -> Dict[str, Any]:
    """
    Paging block for list endpoints, e.g. "Showing 26 to 50 of 73".
    `pg` is a credit_payment_service.Page.
    """
    meta: Dict[str, Any] = {
        "page": pg.page,
        "page_size": pg.per_page,
        "pages": pg.pages,
        "total": pg.total,
        "showing_from": pg.start,
        "showing_to": pg.end,
    }
    meta.update(extra)
    return meta
