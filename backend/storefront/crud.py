"""
CRUD Operations
===============

Database operations used by DatabaseStorage.

Pattern:
def operation_name(db: Session, parameters) -> ReturnType:
    # Database operations
    return result

Every function commits its own work. Multi-entity workflows built on top of
these (order placement, inventory sync) are therefore sequences of separate
transactions, matching the in-memory backend.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront import models, schemas
from storefront.utils import utcnow


# ============================================================================
# USER CRUD OPERATIONS
# ============================================================================

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    """
    Exact, case-sensitive match.

    SQL generated:
        SELECT * FROM users WHERE username = ? LIMIT 1
    """
    return db.query(models.User).filter(models.User.username == username).first()


def get_users_by_role(db: Session, role: str) -> List[models.User]:
    return db.query(models.User).filter(models.User.role == role).order_by(models.User.id).all()


def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    db_user = models.User(**user.model_dump(mode="json"), created_at=utcnow())
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


# ============================================================================
# PRODUCT CRUD OPERATIONS
# ============================================================================

def get_product(db: Session, product_id: int) -> Optional[models.Product]:
    """
    Retrieve a single product by ID.

    Returns:
        Product object if found, None otherwise
    """
    return db.query(models.Product).filter(models.Product.id == product_id).first()


def get_products(
    db: Session,
    category: Optional[str] = None,
    supplier_id: Optional[int] = None,
    is_active: Optional[bool] = None,
    coming_soon: Optional[bool] = None,
) -> List[models.Product]:
    """
    Retrieve products matching every supplied filter.

    Filters left as None are not constraints. Rows come back in insertion
    (id) order.

    SQL generated (all filters supplied):
        SELECT * FROM products
        WHERE category = ? AND supplier_id = ? AND is_active = ? AND coming_soon = ?
        ORDER BY id
    """
    query = db.query(models.Product)
    if category is not None:
        query = query.filter(models.Product.category == category)
    if supplier_id is not None:
        query = query.filter(models.Product.supplier_id == supplier_id)
    if is_active is not None:
        query = query.filter(models.Product.is_active == is_active)
    if coming_soon is not None:
        query = query.filter(models.Product.coming_soon == coming_soon)
    return query.order_by(models.Product.id).all()


def create_product(db: Session, product: schemas.ProductCreate) -> models.Product:
    """
    Create a new product.

    Process:
        1. Convert Pydantic schema → SQLAlchemy model
        2. Add to session (in-memory)
        3. Commit to database (persist)
        4. Refresh to get DB-generated fields (id)
    """
    db_product = models.Product(**product.model_dump())
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    return db_product


def update_product(
    db: Session,
    product_id: int,
    product_update: schemas.ProductUpdate
) -> Optional[models.Product]:
    """
    Update an existing product (partial update).

    Only fields the caller supplied are written; a field sent as null counts
    as not supplied.

    Example:
        product_update = {"price": 899.99}  # Only update price
        Other fields (name, stock) remain unchanged
    """
    db_product = get_product(db, product_id)

    if db_product is None:
        return None

    update_data = product_update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(db_product, field, value)

    db.commit()
    db.refresh(db_product)

    return db_product


def delete_product(db: Session, product_id: int) -> bool:
    """
    Delete a product and its dependents.

    Order matters: supplier inventory rows and reviews reference the product,
    so they go first. Order items keep their product_id as history.

    SQL generated:
        DELETE FROM supplier_inventory WHERE product_id = ?
        DELETE FROM reviews WHERE product_id = ?
        DELETE FROM products WHERE id = ?
    """
    db_product = get_product(db, product_id)

    if db_product is None:
        return False

    db.query(models.SupplierInventory).filter(
        models.SupplierInventory.product_id == product_id
    ).delete(synchronize_session=False)
    db.query(models.Review).filter(
        models.Review.product_id == product_id
    ).delete(synchronize_session=False)
    db.delete(db_product)
    db.commit()

    return True


def set_product_stock(db: Session, product_id: int, stock: int) -> Optional[models.Product]:
    db_product = get_product(db, product_id)

    if db_product is None:
        return None

    db_product.stock = stock
    db.commit()
    db.refresh(db_product)

    return db_product


def get_trending_products(db: Session, limit: int = 4) -> List[models.Product]:
    """
    Active products ranked by mean review rating.

    Products without reviews rank at 0. Ties keep insertion order.

    SQL generated:
        SELECT products.* FROM products
        LEFT OUTER JOIN reviews ON reviews.product_id = products.id
        WHERE products.is_active = 1
        GROUP BY products.id
        ORDER BY coalesce(avg(reviews.rating), 0) DESC, products.id
        LIMIT ?
    """
    avg_rating = func.coalesce(func.avg(models.Review.rating), 0)
    return (
        db.query(models.Product)
        .outerjoin(models.Review, models.Review.product_id == models.Product.id)
        .filter(models.Product.is_active.is_(True))
        .group_by(models.Product.id)
        .order_by(avg_rating.desc(), models.Product.id)
        .limit(limit)
        .all()
    )


def get_top_selling_products(db: Session, limit: int = 4) -> List[models.Product]:
    """
    Active products ranked by total quantity ever ordered (0 when never ordered).
    """
    sold = func.coalesce(func.sum(models.OrderItem.quantity), 0)
    return (
        db.query(models.Product)
        .outerjoin(models.OrderItem, models.OrderItem.product_id == models.Product.id)
        .filter(models.Product.is_active.is_(True))
        .group_by(models.Product.id)
        .order_by(sold.desc(), models.Product.id)
        .limit(limit)
        .all()
    )


# ============================================================================
# ORDER CRUD OPERATIONS
# ============================================================================

def get_order(db: Session, order_id: int) -> Optional[models.Order]:
    return db.query(models.Order).filter(models.Order.id == order_id).first()


def get_orders(
    db: Session,
    customer_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[models.Order]:
    query = db.query(models.Order)
    if customer_id is not None:
        query = query.filter(models.Order.customer_id == customer_id)
    if status is not None:
        query = query.filter(models.Order.status == status)
    return query.order_by(models.Order.id).all()


def get_order_by_payment_reference(db: Session, reference: str) -> Optional[models.Order]:
    return db.query(models.Order).filter(models.Order.payment_reference == reference).first()


def create_order(db: Session, order: schemas.OrderCreate) -> models.Order:
    """
    Create an order header. Lines are added separately with add_order_item().

    order_date is stamped here, at creation time.
    """
    db_order = models.Order(**order.model_dump(mode="json"), order_date=utcnow())
    db.add(db_order)
    db.commit()
    db.refresh(db_order)
    return db_order


def update_order(
    db: Session,
    order_id: int,
    order_update: schemas.OrderUpdate
) -> Optional[models.Order]:
    """
    Partial update of an order.

    No transition rules: any status may follow any other.
    """
    db_order = get_order(db, order_id)

    if db_order is None:
        return None

    update_data = order_update.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(db_order, field, value)

    db.commit()
    db.refresh(db_order)

    return db_order


def delete_order(db: Session, order_id: int) -> bool:
    """
    Delete an order after its items.

    SQL generated:
        DELETE FROM order_items WHERE order_id = ?
        DELETE FROM orders WHERE id = ?
    """
    db_order = get_order(db, order_id)

    if db_order is None:
        return False

    db.query(models.OrderItem).filter(
        models.OrderItem.order_id == order_id
    ).delete(synchronize_session=False)
    db.delete(db_order)
    db.commit()

    return True


def get_order_items(db: Session, order_id: int) -> List[models.OrderItem]:
    return (
        db.query(models.OrderItem)
        .filter(models.OrderItem.order_id == order_id)
        .order_by(models.OrderItem.id)
        .all()
    )


def add_order_item(db: Session, item: schemas.OrderItemCreate) -> models.OrderItem:
    db_item = models.OrderItem(**item.model_dump())
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item


# ============================================================================
# CART CRUD OPERATIONS
# ============================================================================

def get_cart(db: Session, user_id: int) -> Optional[models.Cart]:
    return db.query(models.Cart).filter(models.Cart.user_id == user_id).first()


def update_cart(db: Session, user_id: int, items: List[schemas.CartItem]) -> models.Cart:
    """
    Replace the user's cart items, creating the cart on first use.

    The item list is overwritten wholesale; updated_at is always refreshed.
    """
    payload = [item.model_dump() for item in items]
    db_cart = get_cart(db, user_id)

    if db_cart is None:
        db_cart = models.Cart(user_id=user_id, items=payload, updated_at=utcnow())
        db.add(db_cart)
    else:
        # Assign a new list so the JSON column is flagged as changed
        db_cart.items = payload
        db_cart.updated_at = utcnow()

    db.commit()
    db.refresh(db_cart)
    return db_cart


# ============================================================================
# SUPPLIER INVENTORY CRUD OPERATIONS
# ============================================================================

def get_inventory(db: Session, supplier_id: int) -> List[models.SupplierInventory]:
    return (
        db.query(models.SupplierInventory)
        .filter(models.SupplierInventory.supplier_id == supplier_id)
        .order_by(models.SupplierInventory.id)
        .all()
    )


def upsert_inventory(db: Session, supplier_id: int, product_id: int, stock: int) -> models.SupplierInventory:
    """
    Insert or update the (supplier, product) inventory row.

    Product.stock is NOT touched here; DatabaseStorage.update_inventory syncs
    it in a second, separate commit.
    """
    db_row = (
        db.query(models.SupplierInventory)
        .filter(
            models.SupplierInventory.supplier_id == supplier_id,
            models.SupplierInventory.product_id == product_id,
        )
        .first()
    )

    if db_row is None:
        db_row = models.SupplierInventory(
            supplier_id=supplier_id,
            product_id=product_id,
            available_stock=stock,
            updated_at=utcnow(),
        )
        db.add(db_row)
    else:
        db_row.available_stock = stock
        db_row.updated_at = utcnow()

    db.commit()
    db.refresh(db_row)
    return db_row


# ============================================================================
# REVIEW CRUD OPERATIONS
# ============================================================================

def create_review(db: Session, review: schemas.ReviewCreate) -> models.Review:
    data = review.model_dump()
    # Admin-authored reviews arrive with customer_id 0 (or nothing)
    if data["customer_id"] is not None and data["customer_id"] <= 0:
        data["customer_id"] = None
    db_review = models.Review(**data, created_at=utcnow())
    db.add(db_review)
    db.commit()
    db.refresh(db_review)
    return db_review


def get_reviews(db: Session, product_id: Optional[int] = None) -> List[models.Review]:
    """Newest first; equal timestamps fall back to the higher id first."""
    query = db.query(models.Review)
    if product_id is not None:
        query = query.filter(models.Review.product_id == product_id)
    return query.order_by(models.Review.created_at.desc(), models.Review.id.desc()).all()


def get_top_reviews(db: Session, limit: int = 5) -> List[models.Review]:
    return (
        db.query(models.Review)
        .order_by(models.Review.rating.desc(), models.Review.id)
        .limit(limit)
        .all()
    )


def delete_review(db: Session, review_id: int) -> bool:
    db_review = db.query(models.Review).filter(models.Review.id == review_id).first()

    if db_review is None:
        return False

    db.delete(db_review)
    db.commit()
    return True
