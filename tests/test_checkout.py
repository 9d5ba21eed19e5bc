import stripe
from sqlalchemy import func, select

from storefront.models import Cart, CartItem, Order, Product, Variant


def test_requires_sign_in(client, catalog, fake_stripe):
    client.post("/api/cart", json={"variantId": catalog.small})
    resp = client.post("/api/checkout/create-session")
    assert resp.status_code == 401
    assert fake_stripe == []


def test_empty_cart_is_rejected(client, user, fake_stripe):
    resp = client.post("/api/checkout/create-session")
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Cart is empty"}
    assert fake_stripe == []


def test_get_not_allowed(client, user):
    assert client.get("/api/checkout/create-session").status_code == 405


def test_creates_pending_order_and_stripe_session(client, user, store, fake_stripe):
    with store.session() as db:
        p = Product(name="Hoodie", slug="hoodie")
        p.variants.append(Variant(id=5, sku="HOOD-M", price=1500, inventory=10))
        db.add(p)
        db.commit()
    client.post("/api/cart", json={"variantId": 5, "quantity": 2})

    resp = client.post("/api/checkout/create-session")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["url"] == "https://checkout.stripe.test/cs_test_1"

    [call] = fake_stripe
    assert call["mode"] == "payment"
    assert call["line_items"] == [{
        "quantity": 2,
        "price_data": {"currency": "usd", "unit_amount": 1500, "product_data": {"name": "Hoodie"}},
    }]
    assert call["success_url"] == "http://shop.test/orders/success?session_id={CHECKOUT_SESSION_ID}"
    assert call["cancel_url"] == "http://shop.test/cart"
    assert call["metadata"]["order_id"] == str(body["orderId"])

    with store.session() as db:
        o = db.get(Order, body["orderId"])
        assert (o.user_id, o.status, o.total, o.currency, o.stripe_session) == (user, "pending", 3000, "usd", "cs_test_1")
        assert [(i.variant_id, i.quantity, i.unit_price) for i in o.items] == [(5, 2, 1500)]
        # cart is left in place
        assert db.scalar(select(func.count(CartItem.id))) == 1


def test_total_uses_price_snapshot(client, user, catalog, store, fake_stripe):
    client.post("/api/cart", json={"variantId": catalog.small, "quantity": 2})
    client.post("/api/cart", json={"variantId": catalog.large, "quantity": 1})
    order_id = client.post("/api/checkout/create-session").get_json()["orderId"]

    with store.session() as db:
        db.get(Variant, catalog.small).price = 9999
        db.commit()

    o = client.get(f"/api/orders/{order_id}").get_json()
    assert o["total"] == 2 * 1500 + 2000
    assert o["total"] == sum(i["quantity"] * i["unitPrice"] for i in o["items"])


def test_stripe_failure_leaves_no_order(client, user, catalog, store, monkeypatch):
    def boom(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", boom)
    client.post("/api/cart", json={"variantId": catalog.small})

    resp = client.post("/api/checkout/create-session")
    assert resp.status_code == 502
    assert resp.get_json() == {"error": "Payment provider unavailable"}
    with store.session() as db:
        assert db.scalar(select(func.count(Order.id))) == 0
        assert db.scalar(select(func.count(Cart.id))) == 1


def test_success_page_only_for_own_order(client, user, catalog, fake_stripe):
    client.post("/api/cart", json={"variantId": catalog.small})
    client.post("/api/checkout/create-session")
    assert client.get("/orders/success?session_id=cs_test_1").status_code == 200
    assert client.get("/orders/success?session_id=cs_other").status_code == 404
