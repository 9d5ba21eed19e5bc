import logging
import stripe

from flask import Blueprint, abort, current_app, jsonify, render_template, request
from flask_login import current_user, login_required
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from . import payments
from .cart import find_cart
from .database import get_db
from .helpers import current_user_id
from .models import Order, OrderItem

log = logging.getLogger(__name__)
bp = Blueprint("checkout", __name__)


def stripe_line_items(cart, currency):
    return [{
        "quantity": it.quantity,
        "price_data": {
            "currency": currency,
            "unit_amount": it.variant.price,
            "product_data": {"name": it.variant.product.name},
        },
    } for it in cart.items]


@bp.post("/api/checkout/create-session")
@login_required
def create_session():
    user_id = current_user_id()
    currency = current_app.config["CURRENCY"]
    try:
        # order rows and the Stripe session stand or fall together
        with get_db().session() as db, db.begin():
            cart = find_cart(db, user_id=user_id)
            if not cart or not cart.items:
                return jsonify({"error": "Cart is empty"}), 400
            o = Order(user_id=user_id, status="pending", currency=currency,
                      total=sum(it.quantity * it.variant.price for it in cart.items))
            o.items = [OrderItem(variant_id=it.variant_id, quantity=it.quantity,
                                 unit_price=it.variant.price) for it in cart.items]
            db.add(o)
            db.flush()
            cs = payments.create_checkout_session(
                stripe_line_items(cart, currency),
                customer_email=current_user.email,
                metadata={"order_id": str(o.id), "user_id": str(user_id)},
            )
            o.stripe_session = cs.id
            order_id, url = o.id, cs.url
    except stripe.StripeError:
        log.exception(f"Stripe checkout create failed for user {user_id}")
        return jsonify({"error": "Payment provider unavailable"}), 502
    log.info(f"Order #{order_id} pending for user {user_id}, session {cs.id}")
    return jsonify({"url": url, "orderId": order_id})


@bp.get("/orders/success")
@login_required
def success_page():
    session_id = request.args.get("session_id", "")
    with get_db().session() as db:
        o = db.execute(
            select(Order).options(selectinload(Order.items).selectinload(OrderItem.variant))
            .where(Order.stripe_session == session_id, Order.user_id == current_user_id())
        ).scalar_one_or_none()
        if not o:
            abort(404)
        return render_template("success.html", order=o)
