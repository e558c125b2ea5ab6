"""
Record store for customers and their addresses.

Every function takes the caller's session; none of them commit. Writes are
flushed so constraint violations surface here as typed errors, and the
caller's transaction (see ``app.crm.db.atomic``) decides commit or rollback.
After a ConflictError/NotFoundError raised from a flush the session must be
rolled back before reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crm.errors import ConflictError, NotFoundError
from app.crm.modules.customer_profiles.models import Address, Customer
from app.crm.modules.customer_profiles.validation import AddressFields, CustomerFields

logger = logging.getLogger(__name__)

# Largest id a 64-bit INTEGER column can hold; anything beyond cannot exist.
MAX_ROW_ID = 2**63 - 1


@dataclass(frozen=True)
class CustomerSummary:
    customer: Customer
    address_count: int

    @property
    def only_one_address(self) -> bool:
        return self.address_count == 1

    def to_dict(self) -> dict:
        d = self.customer.to_dict()
        d["address_count"] = self.address_count
        d["only_one_address"] = self.only_one_address
        return d


def _storable(row_id: int) -> bool:
    return 0 < row_id <= MAX_ROW_ID


def _phone_taken(s: Session, phone_number: str, *, exclude_id: int | None = None) -> bool:
    q = s.query(Customer.id).filter(Customer.phone_number == phone_number)
    if exclude_id is not None:
        q = q.filter(Customer.id != exclude_id)
    return q.first() is not None


def _flush_customer(s: Session, phone_number: str) -> None:
    try:
        s.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent insert/update of the same phone.
        logger.info("Unique phone violation on flush (phone=%s): %s", phone_number, e.orig)
        raise ConflictError("Phone number already exists") from e


# ---------- Customers ----------
def get_customer(s: Session, customer_id: int) -> Customer:
    if not _storable(customer_id):
        raise NotFoundError("Customer not found")
    c = s.query(Customer).filter(Customer.id == customer_id).one_or_none()
    if c is None:
        raise NotFoundError("Customer not found")
    return c


def get_customer_with_address_summary(s: Session, customer_id: int) -> CustomerSummary:
    if not _storable(customer_id):
        raise NotFoundError("Customer not found")
    row = (
        s.query(Customer, func.count(Address.id))
        .outerjoin(Address, Address.customer_id == Customer.id)
        .filter(Customer.id == customer_id)
        .group_by(Customer.id)
        .one_or_none()
    )
    if row is None:
        raise NotFoundError("Customer not found")
    customer, count = row
    return CustomerSummary(customer=customer, address_count=int(count or 0))


def create_customer(s: Session, fields: CustomerFields) -> Customer:
    if _phone_taken(s, fields.phone_number):
        raise ConflictError("Phone number already exists")
    c = Customer(**fields.as_dict())
    s.add(c)
    _flush_customer(s, fields.phone_number)
    return c


def update_customer(s: Session, customer_id: int, fields: CustomerFields) -> Customer:
    """Full replacement of name and phone. Last write wins."""
    c = get_customer(s, customer_id)
    if _phone_taken(s, fields.phone_number, exclude_id=c.id):
        raise ConflictError("Phone number already exists")
    c.first_name = fields.first_name
    c.last_name = fields.last_name
    c.phone_number = fields.phone_number
    _flush_customer(s, fields.phone_number)
    return c


def delete_customer_and_addresses(s: Session, customer_id: int) -> int:
    """
    Delete the customer's addresses, then the customer. Returns the number of
    addresses removed. Raises NotFoundError when the customer row is gone;
    the caller's rollback then undoes the address deletes too.
    """
    if not _storable(customer_id):
        raise NotFoundError("Customer not found")
    removed = (
        s.query(Address)
        .filter(Address.customer_id == customer_id)
        .delete(synchronize_session="fetch")
    )
    deleted = (
        s.query(Customer)
        .filter(Customer.id == customer_id)
        .delete(synchronize_session="fetch")
    )
    if deleted == 0:
        raise NotFoundError("Customer not found")
    return int(removed or 0)


# ---------- Addresses ----------
def get_address(s: Session, address_id: int) -> Address:
    if not _storable(address_id):
        raise NotFoundError("Address not found")
    a = s.query(Address).filter(Address.id == address_id).one_or_none()
    if a is None:
        raise NotFoundError("Address not found")
    return a


def list_addresses_for_customer(s: Session, customer_id: int) -> list[Address]:
    if not _storable(customer_id):
        return []
    return (
        s.query(Address)
        .filter(Address.customer_id == customer_id)
        .order_by(Address.id.asc())
        .all()
    )


def create_address(s: Session, customer_id: int, fields: AddressFields) -> Address:
    if not _storable(customer_id):
        raise NotFoundError("Customer not found")
    exists = s.query(Customer.id).filter(Customer.id == customer_id).first()
    if exists is None:
        raise NotFoundError("Customer not found")
    a = Address(customer_id=customer_id, **fields.as_dict())
    s.add(a)
    try:
        s.flush()
    except IntegrityError as e:
        # Customer deleted between the lookup and the insert.
        raise NotFoundError("Customer not found") from e
    return a


def update_address(s: Session, address_id: int, fields: AddressFields) -> Address:
    a = get_address(s, address_id)
    a.address_details = fields.address_details
    a.city = fields.city
    a.state = fields.state
    a.pin_code = fields.pin_code
    s.flush()
    return a


def delete_address(s: Session, address_id: int) -> None:
    if not _storable(address_id):
        raise NotFoundError("Address not found")
    deleted = (
        s.query(Address)
        .filter(Address.id == address_id)
        .delete(synchronize_session="fetch")
    )
    if deleted == 0:
        raise NotFoundError("Address not found")
