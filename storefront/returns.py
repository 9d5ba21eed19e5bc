import logging

from flask import Blueprint, abort, jsonify
from flask_login import login_required
from sqlalchemy.orm import selectinload

from .database import get_db
from .helpers import parse_int, payload
from .models import Order, ReturnRequest
from .orders import own_order

log = logging.getLogger(__name__)
bp = Blueprint("returns", __name__)

CLOSED = frozenset({"rejected"})


@bp.get("/api/orders/<int:order_id>/returns")
@login_required
def list_returns(order_id):
    with get_db().session() as db:
        o = own_order(db, order_id, selectinload(Order.return_requests))
        return jsonify({"returns": [r.to_dict() for r in o.return_requests]})


@bp.post("/api/orders/<int:order_id>/returns")
@login_required
def request_return(order_id):
    data = payload()
    item_id = parse_int(data.get("orderItemId"))
    quantity = parse_int(data.get("quantity", 1))
    reason = (data.get("reason") or "").strip()
    with get_db().session() as db:
        o = own_order(db, order_id, selectinload(Order.items), selectinload(Order.return_requests))
        if o.status != "delivered":
            return jsonify({"error": "Only delivered orders can be returned"}), 400
        item = next((it for it in o.items if it.id == item_id), None)
        if not item:
            abort(404, "Order item not found")
        if not reason:
            return jsonify({"error": "reason is required"}), 400
        requested = sum(r.quantity for r in o.return_requests
                        if r.order_item_id == item.id and r.status not in CLOSED)
        if quantity is None or quantity < 1 or quantity > item.quantity - requested:
            return jsonify({"error": "Invalid return quantity"}), 400
        rr = ReturnRequest(order_item=item, reason=reason, quantity=quantity, status="requested")
        o.return_requests.append(rr)
        db.commit()
        log.info(f"Return #{rr.id} requested for order #{o.id} item #{item.id} x{quantity}")
        return jsonify(rr.to_dict()), 201
