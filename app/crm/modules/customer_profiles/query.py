"""
Customer listing: search, address filters, sorting and pagination.

Filter fields are optional substrings. ``None`` means "no constraint"; the
conversion from raw query-string values happens once, in
``CustomerFilter.from_args``.

Address filters (city/state/pin_code) must all hold for a single address
owned by the customer, so a customer without addresses never matches while
any address filter is set. With no address filter, customers are listed
whether or not they have addresses.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import Session

from app.crm.errors import InvalidInput, ValidationError
from app.crm.modules.customer_profiles.models import Address, Customer

SORT_FIELDS = {
    "id": Customer.id,
    "first_name": Customer.first_name,
    "last_name": Customer.last_name,
    "phone_number": Customer.phone_number,
}
DEFAULT_SORT_FIELD = "id"
# Largest OFFSET a signed 64-bit bind parameter can carry.
MAX_OFFSET = 2**63 - 1


def _optional(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class CustomerFilter:
    search: str | None = None
    city: str | None = None
    state: str | None = None
    pin_code: str | None = None

    @classmethod
    def from_args(cls, args: Mapping[str, object]) -> "CustomerFilter":
        return cls(
            search=_optional(args.get("search")),
            city=_optional(args.get("city")),
            state=_optional(args.get("state")),
            pin_code=_optional(args.get("pin_code")),
        )

    @property
    def has_address_constraint(self) -> bool:
        return any(v is not None for v in (self.city, self.state, self.pin_code))


@dataclass(frozen=True)
class SortSpec:
    field: str = DEFAULT_SORT_FIELD
    descending: bool = True

    @classmethod
    def parse(cls, sort_field: str | None, sort_order: str | None) -> "SortSpec":
        f = (sort_field or "").strip()
        if f not in SORT_FIELDS:
            f = DEFAULT_SORT_FIELD
        descending = (sort_order or "").strip().upper() != "ASC"
        return cls(field=f, descending=descending)


@dataclass(frozen=True)
class CustomerPage:
    rows: list[Customer]
    total: int
    page: int = 1
    limit: int = 5

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def pagination(self) -> dict:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
        }


def parse_paging(
    page: object,
    limit: object,
    *,
    default_limit: int = 5,
    max_limit: int = 100,
) -> tuple[int, int]:
    """Coerce raw page/limit values. Non-integers raise InvalidInput."""
    errs: list[ValidationError] = []

    def _int(name: str, raw: object, default: int) -> int:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return default
        try:
            return int(str(raw).strip())
        except ValueError:
            errs.append(ValidationError(name, f"{name} must be an integer."))
            return default

    p = _int("page", page, 1)
    lim = _int("limit", limit, default_limit)
    if lim < 1:
        errs.append(ValidationError("limit", "limit must be at least 1."))
    if errs:
        raise InvalidInput("Invalid pagination parameters", errs)
    return max(p, 1), min(lim, max_limit)


def _customer_conditions(filters: CustomerFilter) -> list:
    conds = []
    if filters.search is not None:
        term = filters.search
        conds.append(
            or_(
                Customer.first_name.icontains(term, autoescape=True),
                Customer.last_name.icontains(term, autoescape=True),
                Customer.phone_number.icontains(term, autoescape=True),
            )
        )
    if filters.has_address_constraint:
        addr_conds = [Address.customer_id == Customer.id]
        if filters.city is not None:
            addr_conds.append(Address.city.icontains(filters.city, autoescape=True))
        if filters.state is not None:
            addr_conds.append(Address.state.icontains(filters.state, autoescape=True))
        if filters.pin_code is not None:
            addr_conds.append(Address.pin_code.icontains(filters.pin_code, autoescape=True))
        conds.append(exists().where(and_(*addr_conds)))
    return conds


def list_customers(
    s: Session,
    filters: CustomerFilter,
    *,
    page: int = 1,
    limit: int = 5,
    sort: SortSpec | None = None,
) -> CustomerPage:
    """
    One row per matching customer; ``total`` counts distinct customers and
    does not depend on page/limit. Pages past the end come back empty.
    """
    if page < 1 or limit < 1:
        raise InvalidInput("page and limit must be positive integers")
    sort = sort or SortSpec()

    conds = _customer_conditions(filters)
    base = s.query(Customer)
    if conds:
        base = base.filter(*conds)

    total = base.count()

    col = SORT_FIELDS[sort.field]
    if sort.descending:
        order = [col.desc(), Customer.id.desc()]
    else:
        order = [col.asc(), Customer.id.asc()]
    if sort.field == "id":
        order = order[:1]

    offset = (page - 1) * limit
    if offset > MAX_OFFSET:
        # No table holds that many rows, and the driver cannot bind the value.
        return CustomerPage(rows=[], total=total, page=page, limit=limit)

    rows = (
        base.order_by(*order)
        .offset(offset)
        .limit(limit)
        .all()
    )
    return CustomerPage(rows=rows, total=total, page=page, limit=limit)
