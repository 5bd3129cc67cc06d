"""
Storage
=======

The repository every route talks to.

Storage is the capability interface; two implementations satisfy it:

- MemStorage:      per-entity dicts + id counters, for tests and demos
- DatabaseStorage: SQLAlchemy, one short-lived Session per operation (crud.py)

build_storage() picks one at startup from STORAGE_BACKEND. Call sites never
branch on which backend is active, so both must agree on filtering, ordering,
cascades and nullability.

Absent rows come back as None / [] / False, never as exceptions.

Multi-step writes (update_inventory's product stock sync, and the order
placement sequence in routes/orders.py) are separate writes with no enclosing
transaction: a failure midway leaves the earlier writes in place.
"""

import itertools
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import sessionmaker

from storefront import config, crud, schemas
from storefront.sessions import DatabaseSessionStore, MemorySessionStore, SessionStore
from storefront.utils import utcnow

logger = logging.getLogger(__name__)


class Storage(ABC):

    # ------------------------------------------------------------------ users

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[schemas.User]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[schemas.User]:
        """Exact, case-sensitive username match."""

    @abstractmethod
    def get_users_by_role(self, role: schemas.Role) -> List[schemas.User]:
        ...

    @abstractmethod
    def create_user(self, data: schemas.UserCreate) -> schemas.User:
        """
        Insert a user with a new id and created_at.

        Duplicate usernames are NOT rejected here; registration checks first.
        """

    # --------------------------------------------------------------- products

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[schemas.Product]:
        ...

    @abstractmethod
    def get_products(
        self,
        category: Optional[str] = None,
        supplier_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        coming_soon: Optional[bool] = None,
    ) -> List[schemas.Product]:
        """Products matching every non-None filter, in insertion order."""

    @abstractmethod
    def create_product(self, data: schemas.ProductCreate) -> schemas.Product:
        ...

    @abstractmethod
    def update_product(self, product_id: int, patch: schemas.ProductUpdate) -> Optional[schemas.Product]:
        """Apply the fields present in ``patch``; everything else is kept."""

    @abstractmethod
    def delete_product(self, product_id: int) -> bool:
        """Delete inventory rows and reviews of the product, then the product."""

    # ----------------------------------------------------------------- orders

    @abstractmethod
    def get_order(self, order_id: int) -> Optional[schemas.Order]:
        ...

    @abstractmethod
    def get_orders(
        self,
        customer_id: Optional[int] = None,
        status: Optional[schemas.OrderStatus] = None,
    ) -> List[schemas.Order]:
        ...

    @abstractmethod
    def get_order_by_payment_reference(self, reference: str) -> Optional[schemas.Order]:
        """The order already paid with this gateway reference, if any."""

    @abstractmethod
    def create_order(self, data: schemas.OrderCreate) -> schemas.Order:
        """Insert an order stamped with order_date = now."""

    @abstractmethod
    def update_order(self, order_id: int, patch: schemas.OrderUpdate) -> Optional[schemas.Order]:
        ...

    @abstractmethod
    def delete_order(self, order_id: int) -> bool:
        """Delete the order's items, then the order."""

    @abstractmethod
    def get_order_items(self, order_id: int) -> List[schemas.OrderItem]:
        ...

    @abstractmethod
    def add_order_item(self, data: schemas.OrderItemCreate) -> schemas.OrderItem:
        ...

    # ------------------------------------------------------------------- cart

    @abstractmethod
    def get_cart(self, user_id: int) -> Optional[schemas.Cart]:
        ...

    @abstractmethod
    def update_cart(self, user_id: int, items: List[schemas.CartItem]) -> schemas.Cart:
        """Replace (or create) the user's cart; updated_at is always refreshed."""

    # -------------------------------------------------------------- inventory

    @abstractmethod
    def get_inventory(self, supplier_id: int) -> List[schemas.SupplierInventory]:
        ...

    @abstractmethod
    def update_inventory(self, supplier_id: int, product_id: int, stock: int) -> schemas.SupplierInventory:
        """
        Upsert the (supplier, product) row, then set Product.stock to match.

        The two writes are independent; the product write is best effort.
        """

    # ---------------------------------------------------------------- reviews

    @abstractmethod
    def create_review(self, data: schemas.ReviewCreate) -> schemas.Review:
        """customer_id <= 0 is stored as None (admin-authored review)."""

    @abstractmethod
    def get_reviews(self, product_id: Optional[int] = None) -> List[schemas.Review]:
        """Newest first."""

    @abstractmethod
    def get_top_reviews(self, limit: int = 5) -> List[schemas.Review]:
        """Highest rating first; equal ratings keep insertion order."""

    @abstractmethod
    def delete_review(self, review_id: int) -> bool:
        ...

    # ------------------------------------------------------------- rankings

    @abstractmethod
    def get_trending_products(self, limit: int = 4) -> List[schemas.Product]:
        """Active products by mean rating (unreviewed = 0), best first."""

    @abstractmethod
    def get_top_selling_products(self, limit: int = 4) -> List[schemas.Product]:
        """Active products by total ordered quantity (never ordered = 0), best first."""

    # --------------------------------------------------------------- sessions

    @property
    @abstractmethod
    def session_store(self) -> SessionStore:
        ...


# ============================================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================================

def _copy(record):
    return record.model_copy(deep=True) if record is not None else None


def _copies(records: Iterable) -> list:
    return [record.model_copy(deep=True) for record in records]


class MemStorage(Storage):
    """
    Dict-backed storage.

    Dicts keep insertion order, which is the result order for every unsorted
    read. Records are copied on the way in and out, so callers can't mutate
    stored state. There is no locking: concurrent writers to the same record
    are last-write-wins.
    """

    def __init__(self):
        self._users: Dict[int, schemas.User] = {}
        self._products: Dict[int, schemas.Product] = {}
        self._orders: Dict[int, schemas.Order] = {}
        self._order_items: Dict[int, schemas.OrderItem] = {}
        self._carts: Dict[int, schemas.Cart] = {}  # keyed by user_id
        self._inventory: Dict[int, schemas.SupplierInventory] = {}
        self._reviews: Dict[int, schemas.Review] = {}
        self._ids = {
            name: itertools.count(1)
            for name in ("users", "products", "orders", "order_items", "carts", "inventory", "reviews")
        }
        self._session_store = MemorySessionStore()

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    @property
    def session_store(self):
        return self._session_store

    # users

    def get_user(self, user_id):
        return _copy(self._users.get(user_id))

    def get_user_by_username(self, username):
        for user in self._users.values():
            if user.username == username:
                return _copy(user)
        return None

    def get_users_by_role(self, role):
        role = schemas.Role(role)
        return _copies(u for u in self._users.values() if u.role == role)

    def create_user(self, data):
        user = schemas.User(**data.model_dump(), id=self._next_id("users"), created_at=utcnow())
        self._users[user.id] = user
        return _copy(user)

    # products

    def get_product(self, product_id):
        return _copy(self._products.get(product_id))

    def get_products(self, category=None, supplier_id=None, is_active=None, coming_soon=None):
        products = self._products.values()
        if category is not None:
            products = [p for p in products if p.category == category]
        if supplier_id is not None:
            products = [p for p in products if p.supplier_id == supplier_id]
        if is_active is not None:
            products = [p for p in products if p.is_active == is_active]
        if coming_soon is not None:
            products = [p for p in products if p.coming_soon == coming_soon]
        return _copies(products)

    def create_product(self, data):
        product = schemas.Product(**data.model_dump(), id=self._next_id("products"))
        self._products[product.id] = product
        return _copy(product)

    def update_product(self, product_id, patch):
        current = self._products.get(product_id)
        if current is None:
            return None
        updated = current.model_copy(update=patch.model_dump(exclude_unset=True, exclude_none=True), deep=True)
        self._products[product_id] = updated
        return _copy(updated)

    def delete_product(self, product_id):
        if product_id not in self._products:
            return False
        for row_id in [i.id for i in self._inventory.values() if i.product_id == product_id]:
            del self._inventory[row_id]
        for review_id in [r.id for r in self._reviews.values() if r.product_id == product_id]:
            del self._reviews[review_id]
        del self._products[product_id]
        return True

    def _set_product_stock(self, product_id, stock):
        product = self._products.get(product_id)
        if product is not None:
            self._products[product_id] = product.model_copy(update={"stock": stock})

    # orders

    def get_order(self, order_id):
        return _copy(self._orders.get(order_id))

    def get_orders(self, customer_id=None, status=None):
        orders = self._orders.values()
        if customer_id is not None:
            orders = [o for o in orders if o.customer_id == customer_id]
        if status is not None:
            status = schemas.OrderStatus(status)
            orders = [o for o in orders if o.status == status]
        return _copies(orders)

    def get_order_by_payment_reference(self, reference):
        return _copy(next((o for o in self._orders.values() if o.payment_reference == reference), None))

    def create_order(self, data):
        order = schemas.Order(**data.model_dump(), id=self._next_id("orders"), order_date=utcnow())
        self._orders[order.id] = order
        return _copy(order)

    def update_order(self, order_id, patch):
        current = self._orders.get(order_id)
        if current is None:
            return None
        updated = current.model_copy(update=patch.model_dump(exclude_unset=True, exclude_none=True))
        self._orders[order_id] = updated
        return _copy(updated)

    def delete_order(self, order_id):
        if order_id not in self._orders:
            return False
        for item_id in [i.id for i in self._order_items.values() if i.order_id == order_id]:
            del self._order_items[item_id]
        del self._orders[order_id]
        return True

    def get_order_items(self, order_id):
        return _copies(i for i in self._order_items.values() if i.order_id == order_id)

    def add_order_item(self, data):
        item = schemas.OrderItem(**data.model_dump(), id=self._next_id("order_items"))
        self._order_items[item.id] = item
        return _copy(item)

    # cart

    def get_cart(self, user_id):
        return _copy(self._carts.get(user_id))

    def update_cart(self, user_id, items):
        existing = self._carts.get(user_id)
        cart = schemas.Cart(
            id=existing.id if existing is not None else self._next_id("carts"),
            user_id=user_id,
            items=[item.model_copy() for item in items],
            updated_at=utcnow(),
        )
        self._carts[user_id] = cart
        return _copy(cart)

    # inventory

    def get_inventory(self, supplier_id):
        return _copies(i for i in self._inventory.values() if i.supplier_id == supplier_id)

    def update_inventory(self, supplier_id, product_id, stock):
        row = next(
            (i for i in self._inventory.values()
             if i.supplier_id == supplier_id and i.product_id == product_id),
            None,
        )
        if row is None:
            row = schemas.SupplierInventory(
                id=self._next_id("inventory"),
                supplier_id=supplier_id,
                product_id=product_id,
                available_stock=stock,
                updated_at=utcnow(),
            )
        else:
            row = row.model_copy(update={"available_stock": stock, "updated_at": utcnow()})
        self._inventory[row.id] = row

        self._set_product_stock(product_id, stock)
        return _copy(row)

    # reviews

    def create_review(self, data):
        values = data.model_dump()
        if values["customer_id"] is not None and values["customer_id"] <= 0:
            values["customer_id"] = None
        review = schemas.Review(**values, id=self._next_id("reviews"), created_at=utcnow())
        self._reviews[review.id] = review
        return _copy(review)

    def get_reviews(self, product_id=None):
        reviews = self._reviews.values()
        if product_id is not None:
            reviews = [r for r in reviews if r.product_id == product_id]
        return _copies(sorted(reviews, key=lambda r: (r.created_at, r.id), reverse=True))

    def get_top_reviews(self, limit=5):
        # sorted() is stable even with reverse=True, so ties stay in insertion order
        return _copies(sorted(self._reviews.values(), key=lambda r: r.rating, reverse=True)[:limit])

    def delete_review(self, review_id):
        return self._reviews.pop(review_id, None) is not None

    # rankings

    def get_trending_products(self, limit=4):
        ratings: Dict[int, List[int]] = {}
        for review in self._reviews.values():
            ratings.setdefault(review.product_id, []).append(review.rating)

        def mean_rating(product):
            scores = ratings.get(product.id)
            return sum(scores) / len(scores) if scores else 0

        active = [p for p in self._products.values() if p.is_active]
        return _copies(sorted(active, key=mean_rating, reverse=True)[:limit])

    def get_top_selling_products(self, limit=4):
        sold: Dict[int, int] = {}
        for item in self._order_items.values():
            sold[item.product_id] = sold.get(item.product_id, 0) + item.quantity

        active = [p for p in self._products.values() if p.is_active]
        return _copies(sorted(active, key=lambda p: sold.get(p.id, 0), reverse=True)[:limit])


# ============================================================================
# DATABASE IMPLEMENTATION
# ============================================================================

def _one(schema, obj):
    return schema.model_validate(obj) if obj is not None else None


def _many(schema, objs) -> list:
    return [schema.model_validate(obj) for obj in objs]


class DatabaseStorage(Storage):
    """
    SQLAlchemy-backed storage.

    Each operation opens its own Session from ``session_factory`` and converts
    ORM rows to schemas before the Session closes, so no lazy-loading happens
    outside it.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._session_store = DatabaseSessionStore(session_factory)

    @property
    def session_store(self):
        return self._session_store

    # users

    def get_user(self, user_id):
        with self._session_factory() as db:
            return _one(schemas.User, crud.get_user(db, user_id))

    def get_user_by_username(self, username):
        with self._session_factory() as db:
            return _one(schemas.User, crud.get_user_by_username(db, username))

    def get_users_by_role(self, role):
        with self._session_factory() as db:
            return _many(schemas.User, crud.get_users_by_role(db, schemas.Role(role).value))

    def create_user(self, data):
        with self._session_factory() as db:
            return _one(schemas.User, crud.create_user(db, data))

    # products

    def get_product(self, product_id):
        with self._session_factory() as db:
            return _one(schemas.Product, crud.get_product(db, product_id))

    def get_products(self, category=None, supplier_id=None, is_active=None, coming_soon=None):
        with self._session_factory() as db:
            return _many(schemas.Product, crud.get_products(
                db,
                category=category,
                supplier_id=supplier_id,
                is_active=is_active,
                coming_soon=coming_soon,
            ))

    def create_product(self, data):
        with self._session_factory() as db:
            return _one(schemas.Product, crud.create_product(db, data))

    def update_product(self, product_id, patch):
        with self._session_factory() as db:
            return _one(schemas.Product, crud.update_product(db, product_id, patch))

    def delete_product(self, product_id):
        with self._session_factory() as db:
            return crud.delete_product(db, product_id)

    # orders

    def get_order(self, order_id):
        with self._session_factory() as db:
            return _one(schemas.Order, crud.get_order(db, order_id))

    def get_orders(self, customer_id=None, status=None):
        status = schemas.OrderStatus(status).value if status is not None else None
        with self._session_factory() as db:
            return _many(schemas.Order, crud.get_orders(db, customer_id=customer_id, status=status))

    def get_order_by_payment_reference(self, reference):
        with self._session_factory() as db:
            return _one(schemas.Order, crud.get_order_by_payment_reference(db, reference))

    def create_order(self, data):
        with self._session_factory() as db:
            return _one(schemas.Order, crud.create_order(db, data))

    def update_order(self, order_id, patch):
        with self._session_factory() as db:
            return _one(schemas.Order, crud.update_order(db, order_id, patch))

    def delete_order(self, order_id):
        with self._session_factory() as db:
            return crud.delete_order(db, order_id)

    def get_order_items(self, order_id):
        with self._session_factory() as db:
            return _many(schemas.OrderItem, crud.get_order_items(db, order_id))

    def add_order_item(self, data):
        with self._session_factory() as db:
            return _one(schemas.OrderItem, crud.add_order_item(db, data))

    # cart

    def get_cart(self, user_id):
        with self._session_factory() as db:
            return _one(schemas.Cart, crud.get_cart(db, user_id))

    def update_cart(self, user_id, items):
        with self._session_factory() as db:
            return _one(schemas.Cart, crud.update_cart(db, user_id, items))

    # inventory

    def get_inventory(self, supplier_id):
        with self._session_factory() as db:
            return _many(schemas.SupplierInventory, crud.get_inventory(db, supplier_id))

    def update_inventory(self, supplier_id, product_id, stock):
        with self._session_factory() as db:
            row = _one(schemas.SupplierInventory, crud.upsert_inventory(db, supplier_id, product_id, stock))
        # Second, independent commit: not rolled back if it fails
        with self._session_factory() as db:
            if crud.set_product_stock(db, product_id, stock) is None:
                logger.warning("Inventory row %s points at missing product %s", row.id, product_id)
        return row

    # reviews

    def create_review(self, data):
        with self._session_factory() as db:
            return _one(schemas.Review, crud.create_review(db, data))

    def get_reviews(self, product_id=None):
        with self._session_factory() as db:
            return _many(schemas.Review, crud.get_reviews(db, product_id))

    def get_top_reviews(self, limit=5):
        with self._session_factory() as db:
            return _many(schemas.Review, crud.get_top_reviews(db, limit))

    def delete_review(self, review_id):
        with self._session_factory() as db:
            return crud.delete_review(db, review_id)

    # rankings

    def get_trending_products(self, limit=4):
        with self._session_factory() as db:
            return _many(schemas.Product, crud.get_trending_products(db, limit))

    def get_top_selling_products(self, limit=4):
        with self._session_factory() as db:
            return _many(schemas.Product, crud.get_top_selling_products(db, limit))


def build_storage() -> Storage:
    """Storage for STORAGE_BACKEND; creates the tables for the database backend."""
    if config.STORAGE_BACKEND == "database":
        from storefront.database import Base, SessionLocal, engine

        Base.metadata.create_all(bind=engine)
        logger.info("Using database storage at %s", engine.url.render_as_string(hide_password=True))
        return DatabaseStorage(SessionLocal)
    if config.STORAGE_BACKEND == "memory":
        logger.info("Using in-memory storage")
        return MemStorage()
    raise ValueError(f"Unknown STORAGE_BACKEND: {config.STORAGE_BACKEND!r}")
