import logging
import stripe

from flask import Blueprint, jsonify, request
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from . import payments
from .database import get_db
from .models import Order, OrderItem
from .notify import notify

log = logging.getLogger(__name__)
bp = Blueprint("webhooks", __name__)


def mark_paid(db, session_id):
    """Move the pending order for a completed checkout session to paid and take its stock.

    Returns the order id, or None when there is no pending order for the session
    (unknown session, or a replayed event for an order already processed).
    """
    o = db.execute(
        select(Order).options(selectinload(Order.items).selectinload(OrderItem.variant))
        .where(Order.stripe_session == session_id)
        .with_for_update()
    ).scalar_one_or_none()
    if not o:
        log.info(f"No order for checkout session {session_id}")
        return None
    if o.status == "cancelled":
        # charged for an order the customer already cancelled
        log.warning(f"Order #{o.id} cancelled before payment completed; refund required (session {session_id})")
        notify(f"Order #{o.id} was paid after it was cancelled; issue a refund")
        return None
    if o.status != "pending":
        log.info(f"Order #{o.id} already {o.status}; skipping session {session_id}")
        return None
    o.status = "paid"
    for item in o.items:
        v = item.variant
        if v.inventory < item.quantity:
            log.warning(f"Oversold variant {v.sku}: inventory {v.inventory}, ordered {item.quantity}")
        v.inventory = max(0, v.inventory - item.quantity)
    return o.id


@bp.post("/api/webhooks/stripe")
def stripe_webhook():
    body = request.get_data(as_text=True)
    sig = request.headers.get("Stripe-Signature", "")
    try:
        event = payments.construct_event(body, sig)
    except (ValueError, stripe.SignatureVerificationError) as e:
        log.warning(f"Stripe webhook signature failure: {e}")
        return jsonify({"error": f"Webhook Error: {e}"}), 400

    if event["type"] == "checkout.session.completed":
        session_id = event["data"]["object"]["id"]
        try:
            with get_db().session() as db, db.begin():
                order_id = mark_paid(db, session_id)
        except Exception as e:
            log.exception("Stripe webhook error")
            notify(f"Stripe webhook error: {e}")
            return jsonify({"error": "Webhook handling failed"}), 500
        if order_id:
            log.info(f"Order #{order_id} paid (session {session_id})")
            notify(f"Order #{order_id} paid")
    return jsonify({"received": True})
