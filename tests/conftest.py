import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.deps import get_db  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    MedicineReturn,
    Patient,
    PharmacyCreditPayment,
    PharmacySale,
)
from app.services.credit_ledger import (  # noqa: E402
    PaymentRecord,
    ReturnRecord,
    SaleRecord,
)
from app.services.credit_store import LedgerStore  # noqa: E402

HOSPITAL = "Sunrise Hospital"
T0 = datetime(2025, 1, 1, 10, 0, 0)


def at(hours: int) -> datetime:
    return T0 + timedelta(hours=hours)


# ---------- pure record builders ----------
@pytest.fixture
def make_sale():
    def _make(sale_id, total, *, visit_id=None, patient_id="P1",
              patient_name="Asha Kumar", method="CREDIT", hours=None,
              discount="0"):
        return SaleRecord(
            sale_id=sale_id,
            visit_id=visit_id,
            patient_id=patient_id,
            patient_name=patient_name,
            total_amount=Decimal(str(total)),
            discount=Decimal(str(discount)),
            payment_method=method,
            sale_date=at(sale_id if hours is None else hours),
        )

    return _make


@pytest.fixture
def make_payment():
    def _make(pid, amount, *, patient_id="P1", visit_id=None, hours=0,
              method="CASH"):
        return PaymentRecord(
            id=pid,
            patient_id=patient_id,
            visit_id=visit_id,
            amount=Decimal(str(amount)),
            payment_method=method,
            payment_date=at(hours),
        )

    return _make


@pytest.fixture
def make_return():
    def _make(sale_id, refund):
        return ReturnRecord(original_sale_id=sale_id,
                            net_refund=Decimal(str(refund)))

    return _make


# ---------- database ----------
@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db):
    return LedgerStore(db, HOSPITAL)


@pytest.fixture
def seed(db):
    """
    Adds rows for HOSPITAL unless another hospital_name is given.

        seed.sale(1, 500, visit_id="IH25-1")
        seed.payment("pay-1", 400, visit_id="IH25-1")
        seed.ret(1, 100)
    """

    class Seeder:

        def sale(self, sale_id, total, *, visit_id=None, patient_id="P1",
                 patient_name="Asha Kumar", method="CREDIT", hours=None,
                 discount=0, hospital=HOSPITAL, bill_number=None):
            db.add(
                PharmacySale(
                    sale_id=sale_id,
                    bill_number=bill_number,
                    hospital_name=hospital,
                    visit_id=visit_id,
                    patient_id=patient_id,
                    patient_name=patient_name,
                    total_amount=Decimal(str(total)),
                    discount=Decimal(str(discount)),
                    payment_method=method,
                    sale_date=at(sale_id if hours is None else hours),
                ))
            db.commit()

        def payment(self, pid, amount, *, patient_id="P1", visit_id=None,
                    hours=0, hospital=HOSPITAL, patient_name="Asha Kumar",
                    reference=None):
            db.add(
                PharmacyCreditPayment(
                    id=pid,
                    hospital_name=hospital,
                    patient_id=patient_id,
                    patient_name=patient_name,
                    visit_id=visit_id,
                    amount=Decimal(str(amount)),
                    payment_method="CASH",
                    payment_reference=reference,
                    received_by="Front Desk",
                    payment_date=at(hours),
                ))
            db.commit()

        def ret(self, sale_id, refund, *, hospital=HOSPITAL):
            db.add(
                MedicineReturn(hospital_name=hospital,
                               original_sale_id=sale_id,
                               net_refund=Decimal(str(refund))))
            db.commit()

        def patient(self, code, uid, *, hospital=HOSPITAL):
            db.add(Patient(id=uid, patients_id=code, name="Asha Kumar",
                           hospital_name=hospital))
            db.commit()

    return Seeder()


@pytest.fixture
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        c.headers.update({"X-Hospital-Name": HOSPITAL, "X-User-Name": "Ravi"})
        yield c
    app.dependency_overrides.clear()
