import hashlib, hmac, json, time
from types import SimpleNamespace

import pytest
import stripe

from storefront import create_app
from storefront.auth import hash_password
from storefront.database import EXTENSION_KEY
from storefront.models import Image, Product, User, Variant

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}",
        "SECRET_KEY": "test",
        "LOG_FILE": "",
        "PUBLIC_BASE_URL": "http://shop.test",
        "STRIPE_SECRET_KEY": "sk_test_dummy",
        "STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
        "SLACK_WEBHOOK_URL": None,
        "SMTP_HOST": None,
    })
    yield app
    app.extensions[EXTENSION_KEY].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions[EXTENSION_KEY]


@pytest.fixture
def catalog(store):
    """One product with two variants; returns their ids."""
    with store.session() as db:
        p = Product(name="T-Shirt", slug="t-shirt", description="Soft cotton tee")
        p.images.append(Image(url="https://img.test/tee.png", alt="tee"))
        small = Variant(sku="TEE-S", price=1500, size="S", inventory=10)
        large = Variant(sku="TEE-L", price=2000, size="L", inventory=4)
        p.variants.extend([small, large])
        db.add(p)
        db.commit()
        return SimpleNamespace(product_id=p.id, small=small.id, large=large.id)


def make_user(store, email="u@example.com", password="secret", name=None):
    with store.session() as db:
        u = User(email=email, name=name, password_hash=hash_password(password))
        db.add(u)
        db.commit()
        return u.id


def login(client, email="u@example.com", password="secret"):
    resp = client.post("/login", data={"email": email, "password": password})
    assert resp.status_code == 302
    return resp


@pytest.fixture
def user(store, client):
    uid = make_user(store)
    login(client)
    return uid


@pytest.fixture
def fake_stripe(monkeypatch):
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        sid = f"cs_test_{len(calls)}"
        return SimpleNamespace(id=sid, url=f"https://checkout.stripe.test/{sid}")

    monkeypatch.setattr(stripe.checkout.Session, "create", create)
    return calls


def signed(payload: dict, secret=WEBHOOK_SECRET, timestamp=None):
    """Body and Stripe-Signature header for a webhook event."""
    body = json.dumps(payload)
    ts = int(timestamp or time.time())
    sig = hmac.new(secret.encode(), f"{ts}.{body}".encode(), hashlib.sha256).hexdigest()
    return body, {"Stripe-Signature": f"t={ts},v1={sig}", "Content-Type": "application/json"}


def session_completed(session_id, event_id="evt_1"):
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "data": {"object": {"id": session_id, "object": "checkout.session"}},
    }
