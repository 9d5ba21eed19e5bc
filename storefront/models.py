from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

ORDER_STATUSES = ("pending", "paid", "processing", "shipped", "delivered", "cancelled", "returned")
RETURN_STATUSES = ("requested", "approved", "rejected", "received", "refunded")


def utcnow():
    # naive UTC, matching what SQLite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(dt):
    return dt.isoformat() if dt else None


# ----------------- CATALOG -----------------
class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    variants = relationship("Variant", back_populates="product", order_by="Variant.id")
    images = relationship("Image", back_populates="product", order_by="Image.id")

    def from_price(self):
        prices = [v.price for v in self.variants]
        return min(prices) if prices else None

    def to_dict(self, variants=True):
        d = {"id": self.id, "name": self.name, "slug": self.slug, "description": self.description}
        if variants:
            d["variants"] = [v.to_dict() for v in self.variants]
            d["images"] = [i.to_dict() for i in self.images]
        return d


class Variant(Base):
    __tablename__ = "variants"
    id = Column(Integer, primary_key=True)
    sku = Column(String(100), unique=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    price = Column(Integer, nullable=False)  # cents
    size = Column(String(50))
    color = Column(String(50))
    inventory = Column(Integer, nullable=False, default=0)
    product = relationship("Product", back_populates="variants")

    def label(self):
        return self.size or self.color or self.sku

    def to_dict(self, product=False):
        d = {"id": self.id, "sku": self.sku, "productId": self.product_id, "price": self.price,
             "size": self.size, "color": self.color, "inventory": self.inventory}
        if product:
            d["product"] = self.product.to_dict(variants=False)
        return d


class Image(Base):
    __tablename__ = "images"
    id = Column(Integer, primary_key=True)
    url = Column(String(500), nullable=False)
    alt = Column(String(200))
    product_id = Column(Integer, ForeignKey("products.id"))
    product = relationship("Product", back_populates="images")

    def to_dict(self):
        return {"id": self.id, "url": self.url, "alt": self.alt}


# ----------------- USERS & AUTH -----------------
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String(200), unique=True, nullable=False)
    name = Column(String(200))
    password_hash = Column(String(200))  # empty for email-link accounts
    created_at = Column(DateTime, default=utcnow)
    wishlist = relationship("Wishlist", back_populates="user", uselist=False)
    orders = relationship("Order", back_populates="user")


class VerificationToken(Base):
    __tablename__ = "verification_tokens"
    id = Column(Integer, primary_key=True)
    identifier = Column(String(200), nullable=False)
    token = Column(String(128), unique=True, nullable=False)
    expires = Column(DateTime, nullable=False)


# ----------------- WISHLIST -----------------
class Wishlist(Base):
    __tablename__ = "wishlists"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    user = relationship("User", back_populates="wishlist")
    items = relationship("WishlistItem", back_populates="wishlist",
                         cascade="all, delete-orphan", order_by="WishlistItem.id")

    def to_dict(self):
        return {"id": self.id, "userId": self.user_id, "items": [i.to_dict() for i in self.items]}


class WishlistItem(Base):
    __tablename__ = "wishlist_items"
    id = Column(Integer, primary_key=True)
    wishlist_id = Column(Integer, ForeignKey("wishlists.id"), nullable=False)
    variant_id = Column(Integer, ForeignKey("variants.id"), nullable=False)
    added_at = Column(DateTime, default=utcnow)
    wishlist = relationship("Wishlist", back_populates="items")
    variant = relationship("Variant")

    def to_dict(self):
        return {"id": self.id, "wishlistId": self.wishlist_id, "variantId": self.variant_id,
                "addedAt": _iso(self.added_at), "variant": self.variant.to_dict(product=True)}


# ----------------- CART -----------------
class Cart(Base):
    __tablename__ = "carts"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"))
    session_id = Column(String(64), unique=True)  # guest cookie token
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    items = relationship("CartItem", back_populates="cart",
                         cascade="all, delete-orphan", order_by="CartItem.id")

    def subtotal(self):
        return sum(it.quantity * it.variant.price for it in self.items)

    def to_dict(self):
        return {"id": self.id, "userId": self.user_id, "sessionId": self.session_id,
                "items": [i.to_dict() for i in self.items]}


class CartItem(Base):
    __tablename__ = "cart_items"
    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    variant_id = Column(Integer, ForeignKey("variants.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    added_at = Column(DateTime, default=utcnow)
    cart = relationship("Cart", back_populates="items")
    variant = relationship("Variant")

    def to_dict(self):
        return {"id": self.id, "cartId": self.cart_id, "variantId": self.variant_id,
                "quantity": self.quantity, "variant": self.variant.to_dict()}


# ----------------- ORDERS -----------------
class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"))
    status = Column(String(50), nullable=False, default="pending")  # see ORDER_STATUSES
    total = Column(Integer, nullable=False, default=0)  # cents
    currency = Column(String(10), nullable=False, default="usd")
    stripe_session = Column(String(255), unique=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order",
                         cascade="all, delete-orphan", order_by="OrderItem.id")
    return_requests = relationship("ReturnRequest", back_populates="order",
                                   cascade="all, delete-orphan", order_by="ReturnRequest.id")

    def to_dict(self):
        return {"id": self.id, "userId": self.user_id, "status": self.status, "total": self.total,
                "currency": self.currency, "stripeSession": self.stripe_session,
                "createdAt": _iso(self.created_at), "items": [i.to_dict() for i in self.items]}


class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    variant_id = Column(Integer, ForeignKey("variants.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Integer, nullable=False, default=0)  # cents, snapshot at checkout
    order = relationship("Order", back_populates="items")
    variant = relationship("Variant")

    def to_dict(self):
        return {"id": self.id, "orderId": self.order_id, "variantId": self.variant_id,
                "quantity": self.quantity, "unitPrice": self.unit_price}


class ReturnRequest(Base):
    __tablename__ = "return_requests"
    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    order_item_id = Column(Integer, ForeignKey("order_items.id"), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default="requested")  # see RETURN_STATUSES
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    order = relationship("Order", back_populates="return_requests")
    order_item = relationship("OrderItem")

    def to_dict(self):
        return {"id": self.id, "orderId": self.order_id, "orderItemId": self.order_item_id,
                "reason": self.reason, "status": self.status, "quantity": self.quantity,
                "createdAt": _iso(self.created_at)}
