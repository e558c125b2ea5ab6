"""
Payload checks for customers and addresses.

Pure functions: no session, no I/O. Uniqueness (duplicate phone numbers) is
the store's job, not ours.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from app.crm.errors import InvalidInput, ValidationError

PHONE_RE = re.compile(r"^\d{10}$", re.ASCII)
PIN_CODE_RE = re.compile(r"^\d{5,6}$", re.ASCII)

CUSTOMER_FIELDS = ("first_name", "last_name", "phone_number")
ADDRESS_FIELDS = ("address_details", "city", "state", "pin_code")

_LABELS = {
    "first_name": "First name",
    "last_name": "Last name",
    "phone_number": "Phone number",
    "address_details": "Address details",
    "city": "City",
    "state": "State",
    "pin_code": "Pin code",
}


@dataclass(frozen=True)
class CustomerFields:
    first_name: str
    last_name: str
    phone_number: str

    def as_dict(self) -> dict[str, str]:
        return {k: getattr(self, k) for k in CUSTOMER_FIELDS}


@dataclass(frozen=True)
class AddressFields:
    address_details: str
    city: str
    state: str
    pin_code: str

    def as_dict(self) -> dict[str, str]:
        return {k: getattr(self, k) for k in ADDRESS_FIELDS}


def _clean(value: Any) -> str:
    # JSON clients sometimes send digit fields as numbers.
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return ""


def _required(payload: dict[str, Any], fields: tuple[str, ...]) -> tuple[dict[str, str], list[ValidationError]]:
    cleaned = {f: _clean(payload.get(f)) for f in fields}
    errs = [ValidationError(f, f"{_LABELS[f]} is required.") for f in fields if not cleaned[f]]
    return cleaned, errs


def validate_customer_payload(payload: dict[str, Any]) -> list[ValidationError]:
    cleaned, errs = _required(payload, CUSTOMER_FIELDS)
    phone = cleaned["phone_number"]
    if phone and not PHONE_RE.match(phone):
        errs.append(ValidationError("phone_number", "Phone number must be exactly 10 digits."))
    return errs


def validate_address_payload(payload: dict[str, Any]) -> list[ValidationError]:
    cleaned, errs = _required(payload, ADDRESS_FIELDS)
    pin = cleaned["pin_code"]
    if pin and not PIN_CODE_RE.match(pin):
        errs.append(ValidationError("pin_code", "Pin code must be 5 or 6 digits."))
    return errs


def validate_customer(payload: dict[str, Any]) -> CustomerFields:
    """Return trimmed customer fields or raise InvalidInput."""
    errs = validate_customer_payload(payload)
    if errs:
        raise InvalidInput("Invalid or missing customer fields", errs)
    return CustomerFields(**{f: _clean(payload.get(f)) for f in CUSTOMER_FIELDS})


def validate_address(payload: dict[str, Any]) -> AddressFields:
    """Return trimmed address fields or raise InvalidInput."""
    errs = validate_address_payload(payload)
    if errs:
        raise InvalidInput("Invalid or missing address fields", errs)
    return AddressFields(**{f: _clean(payload.get(f)) for f in ADDRESS_FIELDS})
