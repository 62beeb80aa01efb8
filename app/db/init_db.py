# app/db/init_db.py
from __future__ import annotations

import argparse
import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.db.session import engine
from app.db.base import Base

# Import all models so metadata is complete
from app.models import (  # noqa: F401
    Patient, PharmacySale, PharmacyCreditPayment, MedicineReturn)

logger = logging.getLogger(__name__)


def create_tables(bind: Engine = engine) -> None:
    """
    Create missing tables; safe to run multiple times.
    """
    Base.metadata.create_all(bind=bind)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Create pharmacy credit billing tables")
    parser.add_argument("--drop",
                        action="store_true",
                        help="drop existing tables first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    try:
        if args.drop:
            Base.metadata.drop_all(bind=engine)
            logger.info("Dropped tables")
        create_tables()
    except SQLAlchemyError as e:
        logger.error("Table creation failed: %s", e)
        raise
    logger.info("Tables ready: %s", sorted(Base.metadata.tables))


if __name__ == "__main__":
    main()
