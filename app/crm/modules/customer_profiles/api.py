from __future__ import annotations

from typing import Any

from flask import Blueprint, current_app, jsonify, request

from app.crm.db import db_session
from app.crm.modules.customer_profiles import store
from app.crm.modules.customer_profiles.query import CustomerFilter, SortSpec, list_customers, parse_paging
from app.crm.modules.customer_profiles.service import (
    add_address,
    create_customer_with_address,
    delete_customer,
    edit_address,
    edit_customer,
    remove_address,
)

bp = Blueprint("customer_profiles", __name__)


def _payload() -> dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# ---------- Customers ----------
@bp.post("/customers")
def customers_create():
    s = db_session()
    c, a = create_customer_with_address(s, _payload())
    data = c.to_dict()
    data["address"] = a.to_dict()
    return jsonify({"message": "Customer and address created successfully", "data": data})


@bp.get("/customers")
def customers_list():
    s = db_session()
    filters = CustomerFilter.from_args(request.args)
    page, limit = parse_paging(
        request.args.get("page"),
        request.args.get("limit"),
        default_limit=current_app.config.get("DEFAULT_PAGE_LIMIT", 5),
        max_limit=current_app.config.get("MAX_PAGE_LIMIT", 100),
    )
    sort = SortSpec.parse(request.args.get("sortField"), request.args.get("sortOrder"))
    result = list_customers(s, filters, page=page, limit=limit, sort=sort)
    return jsonify(
        {
            "message": "success",
            "data": [c.to_dict() for c in result.rows],
            "pagination": result.pagination(),
        }
    )


@bp.get("/customers/<int:customer_id>")
def customers_detail(customer_id: int):
    s = db_session()
    c = store.get_customer(s, customer_id)
    return jsonify({"message": "success", "data": c.to_dict()})


@bp.get("/customers/<int:customer_id>/with-address-count")
def customers_detail_with_address_count(customer_id: int):
    s = db_session()
    summary = store.get_customer_with_address_summary(s, customer_id)
    return jsonify({"message": "success", "data": summary.to_dict()})


@bp.put("/customers/<int:customer_id>")
def customers_update(customer_id: int):
    s = db_session()
    edit_customer(s, customer_id, _payload())
    return jsonify({"message": "Customer updated successfully"})


@bp.delete("/customers/<int:customer_id>")
def customers_delete(customer_id: int):
    s = db_session()
    delete_customer(s, customer_id)
    return jsonify({"message": "Customer and addresses deleted successfully"})


# ---------- Addresses ----------
@bp.get("/customers/<int:customer_id>/addresses")
def addresses_list(customer_id: int):
    s = db_session()
    rows = store.list_addresses_for_customer(s, customer_id)
    return jsonify({"message": "success", "data": [a.to_dict() for a in rows]})


@bp.post("/customers/<int:customer_id>/addresses")
def addresses_create(customer_id: int):
    s = db_session()
    a = add_address(s, customer_id, _payload())
    return jsonify({"message": "Address added successfully", "data": a.to_dict()})


@bp.put("/addresses/<int:address_id>")
def addresses_update(address_id: int):
    s = db_session()
    edit_address(s, address_id, _payload())
    return jsonify({"message": "Address updated successfully"})


@bp.delete("/addresses/<int:address_id>")
def addresses_delete(address_id: int):
    s = db_session()
    remove_address(s, address_id)
    return jsonify({"message": "Address deleted successfully"})
