import stripe
from flask import current_app


def create_checkout_session(line_items, customer_email=None, metadata=None):
    base = current_app.config["PUBLIC_BASE_URL"].rstrip("/")
    return stripe.checkout.Session.create(
        api_key=current_app.config["STRIPE_SECRET_KEY"],
        mode="payment",
        payment_method_types=["card"],
        customer_email=customer_email,
        line_items=line_items,
        success_url=f"{base}/orders/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base}/cart",
        metadata=metadata or {},
    )


def construct_event(payload: str, signature: str):
    # raises ValueError on bad JSON, stripe.SignatureVerificationError on bad signature
    return stripe.Webhook.construct_event(
        payload, signature, current_app.config["STRIPE_WEBHOOK_SECRET"]
    )
