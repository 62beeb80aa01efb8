# app/api/deps.py
from __future__ import annotations

from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.services.credit_store import LedgerStore


# =========================================================
# DB (per request)
# =========================================================
def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =========================================================
# HOSPITAL / USER CONTEXT
# =========================================================
def billing_scope(
        x_hospital_name: Optional[str] = Header(None),
) -> Optional[str]:
    # LedgerStore rejects an empty scope
    return (x_hospital_name or "").strip() or None


def current_user_name(x_user_name: Optional[str] = Header(None)) -> str:
    return (x_user_name or "").strip() or "Unknown"


def get_ledger_store(
        db: Session = Depends(get_db),
        scope: Optional[str] = Depends(billing_scope),
) -> LedgerStore:
    return LedgerStore(db, scope)
