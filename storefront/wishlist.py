from flask import Blueprint, abort, jsonify, render_template, request
from flask_login import login_required
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .database import get_db
from .helpers import current_user_id, parse_int, payload
from .models import Variant, Wishlist, WishlistItem

bp = Blueprint("wishlist", __name__)

_with_items = (selectinload(Wishlist.items)
               .selectinload(WishlistItem.variant)
               .selectinload(Variant.product))


def find_wishlist(db, user_id):
    return db.execute(
        select(Wishlist).options(_with_items).where(Wishlist.user_id == user_id)
    ).scalar_one_or_none()


@bp.get("/api/wishlist")
@login_required
def get_wishlist():
    with get_db().session() as db:
        wl = find_wishlist(db, current_user_id())
        return jsonify(wl.to_dict() if wl else {"items": []})


@bp.post("/api/wishlist")
@login_required
def add_to_wishlist():
    variant_id = parse_int(payload().get("variantId"))
    if variant_id is None:
        return jsonify({"error": "variantId is required"}), 400
    user_id = current_user_id()
    with get_db().session() as db:
        variant = db.get(Variant, variant_id)
        if not variant:
            abort(404, "Variant not found")
        wl = find_wishlist(db, user_id)
        if not wl:
            wl = Wishlist(user_id=user_id)
            db.add(wl)
        item = WishlistItem(variant=variant)
        wl.items.append(item)
        db.commit()
        return jsonify(item.to_dict())


@bp.delete("/api/wishlist")
@login_required
def remove_from_wishlist():
    item_id = parse_int(request.args.get("id"))
    if item_id is None:
        return jsonify({"error": "id is required"}), 400
    with get_db().session() as db:
        item = db.execute(
            select(WishlistItem).join(Wishlist)
            .where(WishlistItem.id == item_id, Wishlist.user_id == current_user_id())
        ).scalar_one_or_none()
        if not item:
            abort(404, "Wishlist item not found")
        db.delete(item)
        db.commit()
    return jsonify({"success": True})


@bp.get("/wishlist")
@login_required
def wishlist_view():
    with get_db().session() as db:
        wl = find_wishlist(db, current_user_id())
        return render_template("wishlist.html", items=wl.items if wl else [])
