from datetime import timedelta
from urllib.parse import parse_qs, urlparse

from sqlalchemy import select

from storefront.models import User, VerificationToken, utcnow

from tests.conftest import login, make_user


def test_register_signs_in(client, store):
    resp = client.post("/register", data={"email": "New@Example.com", "password": "pw", "name": "Sam"})
    assert resp.status_code == 302
    assert client.get("/api/wishlist").status_code == 200
    with store.session() as db:
        u = db.execute(select(User).where(User.email == "new@example.com")).scalar_one()
        assert u.name == "Sam"
        assert u.password_hash != "pw"


def test_register_duplicate(client, store):
    make_user(store)
    resp = client.post("/register", data={"email": "u@example.com", "password": "pw"})
    assert resp.status_code == 409


def test_bad_password(client, store):
    make_user(store)
    resp = client.post("/login", data={"email": "u@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert client.get("/api/wishlist").status_code == 401


def test_logout(client, user):
    assert client.get("/api/wishlist").status_code == 200
    client.get("/logout")
    assert client.get("/api/wishlist").status_code == 401


def test_login_redirects_to_safe_next_only(client, store):
    make_user(store)
    resp = client.post("/login", data={"email": "u@example.com", "password": "secret", "next": "/orders"})
    assert resp.headers["Location"].endswith("/orders")
    client.get("/logout")
    resp = client.post("/login", data={"email": "u@example.com", "password": "secret",
                                       "next": "https://evil.test/"})
    assert "evil.test" not in resp.headers["Location"]


def test_email_link_sign_in_creates_user(client, store, caplog):
    caplog.set_level("INFO", logger="storefront")
    resp = client.post("/login/email", data={"email": "link@example.com"})
    assert resp.status_code == 200
    with store.session() as db:
        vt = db.execute(select(VerificationToken)).scalar_one()
        assert vt.identifier == "link@example.com"
    assert f"token={vt.token}" in caplog.text

    resp = client.get("/login/verify", query_string={"token": vt.token, "email": "link@example.com"})
    assert resp.status_code == 302
    assert client.get("/api/wishlist").status_code == 200
    with store.session() as db:
        assert db.execute(select(User).where(User.email == "link@example.com")).scalar_one()
        assert db.execute(select(VerificationToken)).first() is None

    # single use
    client.get("/logout")
    again = client.get("/login/verify", query_string={"token": vt.token, "email": "link@example.com"})
    assert again.status_code == 400


def test_expired_link_is_refused(client, store):
    with store.session() as db:
        db.add(VerificationToken(identifier="late@example.com", token="tok",
                                 expires=utcnow() - timedelta(minutes=1)))
        db.commit()
    resp = client.get("/login/verify", query_string={"token": "tok", "email": "late@example.com"})
    assert resp.status_code == 400
    assert client.get("/api/wishlist").status_code == 401


def test_page_routes_redirect_to_login(client):
    resp = client.get("/orders")
    assert resp.status_code == 302
    assert urlparse(resp.headers["Location"]).path == "/login"
    assert parse_qs(urlparse(resp.headers["Location"]).query)["next"] == ["/orders"]
