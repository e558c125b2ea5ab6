"""
CUSTOMER / ADDRESS WRITE PATH
=============================

All writes go through this module. Each function validates its payload
first (nothing is written on InvalidInput), then runs the store operations
inside one transaction on the session it was given.

Operation                       | Rows touched            | Unit
--------------------------------|-------------------------|------------------
create_customer_with_address    | customers + addresses   | one transaction
delete_customer                 | addresses + customers   | one transaction
add_address / edit_* / remove_* | single row              | one transaction

INVARIANTS:
- A customer created here always has its first address committed with it.
- No address outlives its customer.
- A failed operation leaves no partial write visible to later reads.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.crm.db import atomic
from app.crm.modules.customer_profiles import store
from app.crm.modules.customer_profiles.models import Address, Customer
from app.crm.modules.customer_profiles.validation import validate_address, validate_customer

logger = logging.getLogger(__name__)


def create_customer_with_address(s: Session, payload: dict[str, Any]) -> tuple[Customer, Address]:
    customer_fields = validate_customer(payload)
    address_fields = validate_address(payload)

    with atomic(s):
        c = store.create_customer(s, customer_fields)
        a = store.create_address(s, c.id, address_fields)

    logger.info("Created customer id=%s with address id=%s", c.id, a.id)
    return c, a


def delete_customer(s: Session, customer_id: int) -> int:
    with atomic(s):
        removed = store.delete_customer_and_addresses(s, customer_id)
    logger.info("Deleted customer id=%s and %s address(es)", customer_id, removed)
    return removed


def edit_customer(s: Session, customer_id: int, payload: dict[str, Any]) -> Customer:
    fields = validate_customer(payload)
    with atomic(s):
        c = store.update_customer(s, customer_id, fields)
    return c


def add_address(s: Session, customer_id: int, payload: dict[str, Any]) -> Address:
    fields = validate_address(payload)
    with atomic(s):
        a = store.create_address(s, customer_id, fields)
    logger.info("Added address id=%s to customer id=%s", a.id, customer_id)
    return a


def edit_address(s: Session, address_id: int, payload: dict[str, Any]) -> Address:
    fields = validate_address(payload)
    with atomic(s):
        a = store.update_address(s, address_id, fields)
    return a


def remove_address(s: Session, address_id: int) -> None:
    with atomic(s):
        store.delete_address(s, address_id)
