import logging

from flask import Blueprint, abort, jsonify, render_template
from flask_login import login_required
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .database import get_db
from .helpers import current_user_id
from .models import Order, OrderItem
from .notify import notify

log = logging.getLogger(__name__)
bp = Blueprint("orders", __name__)

# orders in these states have left the warehouse
UNCANCELLABLE = frozenset({"shipped", "delivered"})


def can_cancel(status: str) -> bool:
    return status not in UNCANCELLABLE


def own_order(db, order_id, *options, for_update=False):
    """The caller's order, or 404. Other users' orders are reported as missing."""
    stmt = (select(Order).options(*options)
            .where(Order.id == order_id, Order.user_id == current_user_id()))
    if for_update:
        stmt = stmt.with_for_update()
    o = db.execute(stmt).scalar_one_or_none()
    if not o:
        abort(404, "Order not found")
    return o


def list_orders(db, user_id):
    return db.execute(
        select(Order).options(selectinload(Order.items).selectinload(OrderItem.variant))
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    ).scalars().all()


@bp.get("/api/orders")
@login_required
def api_orders():
    with get_db().session() as db:
        return jsonify({"orders": [o.to_dict() for o in list_orders(db, current_user_id())]})


@bp.get("/api/orders/<int:order_id>")
@login_required
def api_order(order_id):
    with get_db().session() as db:
        return jsonify(own_order(db, order_id, selectinload(Order.items)).to_dict())


@bp.post("/api/orders/<int:order_id>/cancel")
@login_required
def cancel_order(order_id):
    with get_db().session() as db:
        o = own_order(db, order_id, for_update=True)
        if not can_cancel(o.status):
            return jsonify({"error": "Cannot cancel after shipment"}), 400
        if o.status == "cancelled":
            return jsonify({"success": True})
        was_paid = o.status == "paid"
        o.status = "cancelled"
        db.commit()
    log.info(f"Order #{order_id} cancelled by user {current_user_id()}")
    if was_paid:
        # refunds are issued by hand from the Stripe dashboard
        log.warning(f"Order #{order_id} was paid; refund required")
        notify(f"Order #{order_id} cancelled after payment; issue a refund")
    return jsonify({"success": True})


@bp.get("/orders")
@login_required
def orders_view():
    with get_db().session() as db:
        orders = list_orders(db, current_user_id())
        return render_template("orders.html", orders=orders, can_cancel=can_cancel)
