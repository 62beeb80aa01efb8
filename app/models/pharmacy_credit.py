# FILE: app/models/pharmacy_credit.py
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    Numeric,
    Index,
)

from app.db.base import Base

COMMON_TABLE_ARGS = {
    "mysql_engine": "InnoDB",
    "mysql_charset": "utf8mb4",
    "mysql_collate": "utf8mb4_unicode_ci",
}


def _uuid() -> str:
    return str(uuid.uuid4())


class Patient(Base):
    """
    Identifier resolution only: maps the external patient code printed on
    bills (patients_id, e.g. "UHID-00012") to the internal key (id).
    """
    __tablename__ = "patients"
    __table_args__ = (
        Index("ix_patients_hospital_code", "hospital_name", "patients_id"),
        COMMON_TABLE_ARGS,
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    patients_id = Column(String(64), nullable=False)
    name = Column(String(191), nullable=True)
    hospital_name = Column(String(191), nullable=False, index=True)


class PharmacySale(Base):
    """
    Pharmacy bill.

    payment_method:
      - CASH / CARD / UPI / INSURANCE : settled at the counter
      - CREDIT                        : billed now, collected later
    visit_id is set for registered OPD / IPD visits ("IH..." = IPD) and
    empty for walk-in counter sales.
    """
    __tablename__ = "pharmacy_sales"
    __table_args__ = (
        Index("ix_pharmacy_sales_hospital_method", "hospital_name",
              "payment_method"),
        Index("ix_pharmacy_sales_visit", "visit_id"),
        COMMON_TABLE_ARGS,
    )

    sale_id = Column(Integer, primary_key=True, autoincrement=True)
    bill_number = Column(String(64), nullable=True)

    hospital_name = Column(String(191), nullable=False, index=True)
    visit_id = Column(String(64), nullable=True)
    patient_id = Column(String(64), nullable=True, index=True)
    patient_name = Column(String(191), nullable=True)

    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_method = Column(String(16), nullable=False, default="CASH")

    sale_date = Column(DateTime, nullable=False, default=datetime.utcnow)


class PharmacyCreditPayment(Base):
    """
    Money collected against CREDIT bills.

    visit_id is empty on rows written before visit-level tracking existed
    (legacy payments); those are attributed by patient_id.
    """
    __tablename__ = "pharmacy_credit_payments"
    __table_args__ = (
        Index("ix_credit_payments_patient_visit", "patient_id", "visit_id"),
        COMMON_TABLE_ARGS,
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    hospital_name = Column(String(191), nullable=False, index=True)

    patient_id = Column(String(64), nullable=True)
    patient_uuid = Column(String(36), nullable=True)
    patient_name = Column(String(191), nullable=True)
    visit_id = Column(String(64), nullable=True)

    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(16), nullable=False,
                            default="CASH")  # CASH / CARD / UPI
    payment_reference = Column(String(128), nullable=True)
    remarks = Column(Text, nullable=True)
    pharmacy_executive = Column(String(191), nullable=True)
    received_by = Column(String(191), nullable=True)

    payment_date = Column(DateTime,
                          nullable=False,
                          default=datetime.utcnow,
                          index=True)


class MedicineReturn(Base):
    """
    Refund against a previously billed sale.
    patient_id here holds the internal patient key, not the bill code.
    """
    __tablename__ = "medicine_returns"
    __table_args__ = COMMON_TABLE_ARGS

    id = Column(Integer, primary_key=True, autoincrement=True)
    hospital_name = Column(String(191), nullable=False, index=True)

    original_sale_id = Column(Integer, nullable=False, index=True)
    patient_id = Column(String(36), nullable=True)
    net_refund = Column(Numeric(12, 2), nullable=False, default=0)
    return_date = Column(DateTime, nullable=False, default=datetime.utcnow)
