from sqlalchemy import select

from .models import Image, Product, Variant

DEMO = [
    dict(name="T-Shirt", slug="t-shirt", description="Soft cotton tee",
         image="https://picsum.photos/seed/tee/600/600",
         variants=[dict(sku="TEE-S-BLK", price=1999, size="S", color="black", inventory=25),
                   dict(sku="TEE-M-BLK", price=1999, size="M", color="black", inventory=40),
                   dict(sku="TEE-L-BLK", price=1999, size="L", color="black", inventory=30)]),
    dict(name="Hoodie", slug="hoodie", description="Brushed fleece hoodie",
         image="https://picsum.photos/seed/hoodie/600/600",
         variants=[dict(sku="HOOD-M-GRY", price=4999, size="M", color="grey", inventory=15),
                   dict(sku="HOOD-L-GRY", price=4999, size="L", color="grey", inventory=10)]),
    dict(name="Cap", slug="cap", description="Adjustable cap",
         image="https://picsum.photos/seed/cap/600/600",
         variants=[dict(sku="CAP-OS-NVY", price=1599, color="navy", inventory=50)]),
]


def seed_catalog(db, products=DEMO):
    """Upsert demo products by slug and their variants by sku."""
    for d in products:
        p = db.execute(select(Product).where(Product.slug == d["slug"])).scalar_one_or_none()
        if not p:
            p = Product(slug=d["slug"])
            db.add(p)
        p.name, p.description = d["name"], d.get("description")
        if d.get("image") and not any(i.url == d["image"] for i in p.images):
            p.images.append(Image(url=d["image"], alt=d["name"]))
        for vd in d["variants"]:
            v = db.execute(select(Variant).where(Variant.sku == vd["sku"])).scalar_one_or_none()
            if not v:
                v = Variant(sku=vd["sku"])
                p.variants.append(v)
            for k, val in vd.items():
                setattr(v, k, val)
    db.commit()
    return len(products)
