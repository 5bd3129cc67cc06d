"""
Database Models
===============

Defines the database schema using SQLAlchemy ORM.

Tables:
- users: customers, suppliers and administrators
- products: items for sale, each owned by a supplier
- orders / order_items: customer orders and their lines
- carts: one pending cart per user
- supplier_inventory: supplier-scoped stock ledger, one row per product
- reviews: product ratings
- sessions: server-side HTTP sessions

Cascades are NOT delegated to the database: crud deletes children before
parents explicitly, so relationships use passive_deletes=True and never try to
null out child foreign keys themselves.
"""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from storefront.database import Base
from storefront.utils import utcnow


# ============================================================================
# USER MODEL
# ============================================================================

class User(Base):
    """
    Any account that can log in.

    Attributes:
        username: Unique login name (case-sensitive)
        password: "hexdigest.salt" scrypt hash, or legacy plaintext
        role: admin | supplier | customer (no update path)
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    full_name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False, default="customer", index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    products = relationship("Product", back_populates="supplier", passive_deletes=True)


# ============================================================================
# PRODUCT MODEL
# ============================================================================

class Product(Base):
    """
    Products available for purchase.

    Attributes:
        price: List price
        discount: Percentage off the list price (0-100)
        image_urls / available_sizes / available_colors: ordered JSON lists
        stock: Available quantity, mirrored from the supplier inventory row
        coming_soon / release_date: pre-release listing
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    discount = Column(Float, default=0, nullable=False)
    category = Column(String(100), nullable=True, index=True)
    image_urls = Column(JSON, default=list, nullable=False)
    available_sizes = Column(JSON, default=list, nullable=False)
    available_colors = Column(JSON, default=list, nullable=False)

    supplier_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    stock = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    coming_soon = Column(Boolean, default=False, nullable=False)
    release_date = Column(DateTime, nullable=True)

    supplier = relationship("User", back_populates="products")
    reviews = relationship("Review", back_populates="product", passive_deletes=True)
    inventory = relationship("SupplierInventory", back_populates="product", passive_deletes=True)


# ============================================================================
# ORDER MODELS
# ============================================================================

class Order(Base):
    """
    Customer orders.

    status is one of pending, processing, shipped, delivered, cancelled; any
    permitted caller may move it to any value.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Float, nullable=False)
    status = Column(String(50), default="pending", nullable=False)
    payment_status = Column(String(50), default="pending", nullable=False)
    payment_reference = Column(String(100), unique=True, nullable=True)
    order_date = Column(DateTime, default=utcnow, nullable=False)

    items = relationship("OrderItem", back_populates="order", passive_deletes=True)


class OrderItem(Base):
    """
    Individual lines within an order.

    product_id carries no foreign key: order history outlives deleted products.
    price_at_purchase stores the discounted unit price when the order was placed.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price_at_purchase = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")


# ============================================================================
# CART MODEL
# ============================================================================

class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    # [{"product_id": 1, "quantity": 2, "size": "M", "color": "red"}, ...]
    items = Column(JSON, default=list, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


# ============================================================================
# SUPPLIER INVENTORY MODEL
# ============================================================================

class SupplierInventory(Base):
    __tablename__ = "supplier_inventory"

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    available_stock = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    product = relationship("Product", back_populates="inventory")


# ============================================================================
# REVIEW MODEL
# ============================================================================

class Review(Base):
    """
    Product ratings. customer_id is NULL for reviews written by an admin.
    """
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    product = relationship("Product", back_populates="reviews")


# ============================================================================
# HTTP SESSION MODEL
# ============================================================================

class HttpSession(Base):
    __tablename__ = "sessions"

    sid = Column(String(128), primary_key=True)
    data = Column(JSON, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
