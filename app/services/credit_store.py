# FILE: app/services/credit_store.py
"""
Ledger store over the pharmacy tables, scoped to one hospital.

Reads come back as immutable records; the reconciliation code never sees ORM
rows. Read failures raise DataUnavailable, write failures WriteFailed.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.pharmacy_credit import (
    MedicineReturn,
    Patient,
    PharmacyCreditPayment,
    PharmacySale,
)
from app.services.billing_math import money2
from app.services.credit_errors import (
    CreditValidationError,
    DataUnavailable,
    WriteFailed,
)
from app.services.credit_ledger import (
    CREDIT,
    PatientRef,
    PaymentRecord,
    ReturnRecord,
    SaleRecord,
    StatementKey,
    VisitRef,
    WalkinRef,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _sale(row: PharmacySale) -> SaleRecord:
    return SaleRecord(
        sale_id=int(row.sale_id),
        bill_number=row.bill_number,
        visit_id=row.visit_id or None,
        patient_id=row.patient_id or None,
        patient_name=row.patient_name or "Walk-in",
        total_amount=money2(row.total_amount),
        discount=money2(row.discount),
        payment_method=(row.payment_method or "").upper(),
        sale_date=row.sale_date,
    )


def _payment(row: PharmacyCreditPayment) -> PaymentRecord:
    return PaymentRecord(
        id=str(row.id),
        patient_id=row.patient_id or None,
        patient_name=row.patient_name,
        visit_id=row.visit_id or None,
        amount=money2(row.amount),
        payment_method=(row.payment_method or "").upper(),
        payment_reference=row.payment_reference or None,
        remarks=row.remarks or None,
        pharmacy_executive=row.pharmacy_executive or None,
        received_by=row.received_by,
        payment_date=row.payment_date,
    )


def _return(row: MedicineReturn) -> ReturnRecord:
    return ReturnRecord(original_sale_id=int(row.original_sale_id),
                        net_refund=money2(row.net_refund))


class LedgerStore:

    def __init__(self, db: Session, hospital_name: Optional[str]):
        scope = (hospital_name or "").strip()
        if not scope:
            raise CreditValidationError("Hospital not configured")
        self.db = db
        self.hospital_name = scope

    def _read(self, stream: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error fetching %s for %s: %s", stream,
                         self.hospital_name, e)
            raise DataUnavailable(stream, str(e)) from e

    def _sales(self):
        return self.db.query(PharmacySale).filter(
            PharmacySale.hospital_name == self.hospital_name)

    def _payments(self):
        return self.db.query(PharmacyCreditPayment).filter(
            PharmacyCreditPayment.hospital_name == self.hospital_name)

    # ---------- reads ----------
    def fetch_credit_sales(self) -> List[SaleRecord]:
        def q():
            rows = (self._sales().filter(
                func.upper(PharmacySale.payment_method) == CREDIT).order_by(
                    PharmacySale.sale_date.desc(),
                    PharmacySale.sale_id.desc()).all())
            return [_sale(r) for r in rows]

        return self._read("credit sales", q)

    def fetch_all_sales(self, key: StatementKey) -> List[SaleRecord]:
        """
        Every sale (any payment method) behind a statement key.
        A walk-in ledger holds exactly its originating sale.
        """
        def q():
            qs = self._sales()
            if isinstance(key, VisitRef):
                qs = qs.filter(PharmacySale.visit_id == key.visit_id)
            elif isinstance(key, WalkinRef):
                qs = qs.filter(PharmacySale.sale_id == key.sale_id)
            elif isinstance(key, PatientRef):
                qs = qs.filter(PharmacySale.patient_id == key.patient_id)
            else:
                raise TypeError(f"Unsupported statement key: {key!r}")
            rows = qs.order_by(PharmacySale.sale_date.asc(),
                               PharmacySale.sale_id.asc()).all()
            return [_sale(r) for r in rows]

        return self._read("sales", q)

    def fetch_payments(self) -> List[PaymentRecord]:
        def q():
            rows = self._payments().order_by(
                PharmacyCreditPayment.payment_date.asc(),
                PharmacyCreditPayment.id.asc()).all()
            return [_payment(r) for r in rows]

        return self._read("payments", q)

    def fetch_returns(self) -> List[ReturnRecord]:
        def q():
            rows = (self.db.query(MedicineReturn).filter(
                MedicineReturn.hospital_name == self.hospital_name).order_by(
                    MedicineReturn.id.asc()).all())
            return [_return(r) for r in rows]

        return self._read("returns", q)

    def fetch_ledger_payments(self, patient_id: Optional[str],
                              visit_id: Optional[str]) -> List[PaymentRecord]:
        def q():
            qs = self._payments().filter(
                PharmacyCreditPayment.patient_id == patient_id)
            if visit_id:
                qs = qs.filter(PharmacyCreditPayment.visit_id == visit_id)
            rows = qs.order_by(PharmacyCreditPayment.payment_date.desc(),
                               PharmacyCreditPayment.id.desc()).all()
            return [_payment(r) for r in rows]

        return self._read("payments", q)

    def fetch_payment_history(self, page: int,
                              per_page: int) -> Tuple[List[PaymentRecord], int]:
        def q():
            base = self._payments()
            total = base.count()
            rows = (base.order_by(
                PharmacyCreditPayment.payment_date.desc(),
                PharmacyCreditPayment.id.desc()).offset(
                    (page - 1) * per_page).limit(per_page).all())
            return [_payment(r) for r in rows], int(total)

        return self._read("payments", q)

    def get_payment(self, payment_id: str) -> Optional[PaymentRecord]:
        def q():
            row = self._payments().filter(
                PharmacyCreditPayment.id == payment_id).first()
            return _payment(row) if row else None

        return self._read("payments", q)

    def resolve_patient_key(self, external_code: Optional[str]) -> Optional[str]:
        if not external_code:
            return None

        def q():
            row = (self.db.query(Patient.id).filter(
                Patient.patients_id == external_code).filter(
                    Patient.hospital_name == self.hospital_name).first())
            return str(row[0]) if row else None

        return self._read("patients", q)

    # ---------- writes ----------
    def append_payment(self,
                       record: PaymentRecord,
                       *,
                       patient_uuid: Optional[str] = None) -> PaymentRecord:
        row = PharmacyCreditPayment(
            id=record.id,
            hospital_name=self.hospital_name,
            patient_id=record.patient_id,
            patient_uuid=patient_uuid,
            patient_name=record.patient_name,
            visit_id=record.visit_id,
            amount=money2(record.amount),
            payment_method=record.payment_method,
            payment_reference=record.payment_reference,
            remarks=record.remarks,
            pharmacy_executive=record.pharmacy_executive or "",
            received_by=record.received_by,
            payment_date=record.payment_date,
        )
        try:
            self.db.add(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error saving credit payment %s: %s", record.id, e)
            raise WriteFailed(f"Failed to save payment: {getattr(e, 'orig', None) or e}") from e

        self.db.refresh(row)
        return _payment(row)
