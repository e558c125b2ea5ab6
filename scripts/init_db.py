"""
Create the customers/addresses schema (idempotent).

Usage:
  python scripts/init_db.py            # uses DATABASE_URL (default sqlite:///crm.db)
  python scripts/init_db.py --demo     # also adds a sample customer if the table is empty
"""

import argparse
import os
import sys
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.crm.models import Base
from app.crm.modules.customer_profiles.models import Address, Customer


@contextmanager
def _session_scope(engine):
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def init_schema(*, database_url: str | None = None, demo: bool = False) -> None:
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///crm.db").strip()

    # Direct engine so this can run before the web app is importable (release phase).
    engine = create_engine(db_url, future=True)
    Base.metadata.create_all(bind=engine)
    print("Schema ready (customers, addresses).", flush=True)

    if not demo:
        return
    with _session_scope(engine) as s:
        if s.query(Customer.id).first() is not None:
            print("Customers already present; skipping demo data.", flush=True)
            return
        c = Customer(first_name="Asha", last_name="Rao", phone_number="9876543210")
        c.addresses.append(Address(address_details="12 MG Rd", city="Pune", state="MH", pin_code="411001"))
        s.add(c)
    print("Added demo customer.", flush=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the CRM database schema.")
    parser.add_argument("--database-url", default=None)
    parser.add_argument("--demo", action="store_true", help="insert a sample customer when empty")
    args = parser.parse_args()
    init_schema(database_url=args.database_url, demo=args.demo)


if __name__ == "__main__":
    main()
