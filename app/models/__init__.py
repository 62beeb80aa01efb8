# app/models/__init__.py
from .pharmacy_credit import (
    Patient,
    PharmacySale,
    PharmacyCreditPayment,
    MedicineReturn,
)

__all__ = [
    "Patient",
    "PharmacySale",
    "PharmacyCreditPayment",
    "MedicineReturn",
]
