from flask import Blueprint, abort, jsonify, render_template
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .database import get_db
from .models import Product

bp = Blueprint("catalog", __name__)

PAGE_SIZE = 20
_full = (selectinload(Product.variants), selectinload(Product.images))


def list_products(db, limit=PAGE_SIZE):
    return db.execute(
        select(Product).options(*_full).order_by(Product.created_at.desc(), Product.id.desc()).limit(limit)
    ).scalars().all()


def product_by_slug(db, slug):
    return db.execute(
        select(Product).options(*_full).where(Product.slug == slug)
    ).scalar_one_or_none()


@bp.get("/")
def index():
    with get_db().session() as db:
        products = list_products(db)
        return render_template("index.html", products=products)


@bp.get("/products/<slug>")
def product(slug):
    with get_db().session() as db:
        p = product_by_slug(db, slug)
        if not p:
            abort(404)
        return render_template("product.html", p=p)


@bp.get("/api/products")
def api_products():
    with get_db().session() as db:
        return jsonify({"products": [p.to_dict() for p in list_products(db)]})


@bp.get("/api/products/<slug>")
def api_product(slug):
    with get_db().session() as db:
        p = product_by_slug(db, slug)
        if not p:
            abort(404, "Product not found")
        return jsonify(p.to_dict())
