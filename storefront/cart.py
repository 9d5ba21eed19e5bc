import logging, secrets

from flask import Blueprint, abort, current_app, jsonify, make_response, render_template, request
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .database import get_db
from .helpers import current_user_id, parse_int, payload
from .models import Cart, CartItem, Variant, utcnow

log = logging.getLogger(__name__)
bp = Blueprint("cart", __name__)

_with_items = selectinload(Cart.items).selectinload(CartItem.variant).selectinload(Variant.product)


def guest_token():
    return request.cookies.get(current_app.config["CART_COOKIE"])


def find_cart(db, user_id=None, session_id=None):
    if user_id is not None:
        where = Cart.user_id == user_id
    elif session_id:
        where = Cart.session_id == session_id
    else:
        return None
    return db.execute(select(Cart).options(_with_items).where(where)).scalars().first()


def adopt_guest_cart(user_id, resp):
    """Move the lines of the browser's guest cart into the user's cart and drop the guest cart."""
    token = guest_token()
    if not token:
        return
    with get_db().session() as db:
        guest = find_cart(db, session_id=token)
        if guest and guest.user_id is None:
            moved = list(guest.items)
            if moved:
                cart = find_cart(db, user_id=user_id)
                if not cart:
                    cart = Cart(user_id=user_id)
                    db.add(cart)
                for it in moved:
                    cart.items.append(CartItem(variant_id=it.variant_id, quantity=it.quantity))
                cart.updated_at = utcnow()
            db.delete(guest)
            db.commit()
            log.info(f"Merged {len(moved)} guest cart line(s) into cart of user {user_id}")
    resp.delete_cookie(current_app.config["CART_COOKIE"])


# --------------------------- API ---------------------------
@bp.get("/api/cart")
def get_cart():
    with get_db().session() as db:
        cart = find_cart(db, user_id=current_user_id(), session_id=guest_token())
        return jsonify(cart.to_dict() if cart else {"items": []})


@bp.post("/api/cart")
def add_to_cart():
    data = payload()
    variant_id = parse_int(data.get("variantId"))
    quantity = parse_int(data.get("quantity", 1))
    if variant_id is None:
        return jsonify({"error": "variantId is required"}), 400
    if quantity is None or quantity < 1:
        return jsonify({"error": "quantity must be a positive integer"}), 400

    user_id = current_user_id()
    new_token = None
    with get_db().session() as db:
        variant = db.get(Variant, variant_id)
        if not variant:
            abort(404, "Variant not found")
        if user_id is not None:
            cart = find_cart(db, user_id=user_id)
            if not cart:
                cart = Cart(user_id=user_id)
                db.add(cart)
        else:
            token = guest_token()
            cart = find_cart(db, session_id=token) if token else None
            if not cart:
                if not token:
                    token = new_token = secrets.token_urlsafe(32)
                cart = Cart(session_id=token)
                db.add(cart)
        # every add is a new line, even for a variant already in the cart
        cart.items.append(CartItem(variant=variant, quantity=quantity))
        cart.updated_at = utcnow()
        db.commit()
        body = cart.to_dict()

    resp = make_response(jsonify(body))
    if new_token:
        resp.set_cookie(current_app.config["CART_COOKIE"], new_token,
                        max_age=current_app.config["CART_COOKIE_MAX_AGE"],
                        httponly=True, samesite="Lax")
    return resp


@bp.delete("/api/cart")
def remove_from_cart():
    item_id = parse_int(request.args.get("id"))
    if item_id is None:
        return jsonify({"error": "id is required"}), 400
    with get_db().session() as db:
        cart = find_cart(db, user_id=current_user_id(), session_id=guest_token())
        item = next((it for it in cart.items if it.id == item_id), None) if cart else None
        if not item:
            abort(404, "Cart item not found")
        cart.items.remove(item)
        cart.updated_at = utcnow()
        db.commit()
        return jsonify(cart.to_dict())


# --------------------------- PAGES ---------------------------
@bp.get("/cart")
def cart_view():
    with get_db().session() as db:
        cart = find_cart(db, user_id=current_user_id(), session_id=guest_token())
        lines = [(it, it.quantity * it.variant.price) for it in cart.items] if cart else []
        subtotal = cart.subtotal() if cart else 0
        return render_template("cart.html", lines=lines, subtotal=subtotal)
