"""
Pydantic Schemas
================

Two families of models live here:

- Entity records (User, Product, Order, ...) returned by BOTH storage backends,
  so callers never see an ORM object or a backend-specific dict.
- Request payloads validated by the API layer (RegisterRequest,
  PlaceOrderRequest, ...).

Python attributes are snake_case; JSON uses camelCase aliases
(``full_name`` <-> ``fullName``). populate_by_name lets code and tests build
models with either spelling.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# ENUMS
# ============================================================================

class Role(str, Enum):
    ADMIN = "admin"
    SUPPLIER = "supplier"
    CUSTOMER = "customer"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# ============================================================================
# USERS
# ============================================================================

class UserBase(CamelModel):
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role = Role.CUSTOMER


class UserCreate(UserBase):
    # Already hashed by the auth layer; storage stores what it is given
    password: str


class User(UserCreate):
    id: int
    created_at: datetime


class UserPublic(UserBase):
    """User without the password field; the only user shape sent over HTTP."""
    id: int
    created_at: datetime


# ============================================================================
# PRODUCTS
# ============================================================================

class ProductBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    discount: float = Field(0, ge=0, le=100)
    category: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    available_sizes: List[str] = Field(default_factory=list)
    available_colors: List[str] = Field(default_factory=list)
    stock: int = Field(0, ge=0)
    is_active: bool = True
    coming_soon: bool = False
    release_date: Optional[datetime] = None


class ProductCreate(ProductBase):
    # Filled in by the API layer for suppliers; admins may choose the owner
    supplier_id: Optional[int] = None


class ProductUpdate(CamelModel):
    """Sparse patch: only fields present in the payload are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    category: Optional[str] = None
    image_urls: Optional[List[str]] = None
    available_sizes: Optional[List[str]] = None
    available_colors: Optional[List[str]] = None
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    coming_soon: Optional[bool] = None
    release_date: Optional[datetime] = None


class Product(ProductBase):
    id: int
    supplier_id: int


# ============================================================================
# ORDERS
# ============================================================================

class OrderCreate(CamelModel):
    customer_id: int
    total_amount: float = Field(..., ge=0)
    status: OrderStatus = OrderStatus.PENDING
    payment_status: str = "pending"
    payment_reference: Optional[str] = None


class OrderUpdate(CamelModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[str] = None
    total_amount: Optional[float] = Field(None, ge=0)


class Order(OrderCreate):
    id: int
    order_date: datetime


class OrderItemCreate(CamelModel):
    order_id: int
    product_id: int
    quantity: int = Field(..., ge=1)
    price_at_purchase: float = Field(..., ge=0)


class OrderItem(OrderItemCreate):
    id: int


class OrderWithItems(Order):
    items: List[OrderItem] = Field(default_factory=list)


# ============================================================================
# CART
# ============================================================================

class CartItem(CamelModel):
    product_id: int
    quantity: int = Field(1, ge=1)
    size: Optional[str] = None
    color: Optional[str] = None


class Cart(CamelModel):
    id: Optional[int] = None
    user_id: int
    items: List[CartItem] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


# ============================================================================
# INVENTORY
# ============================================================================

class SupplierInventory(CamelModel):
    id: int
    supplier_id: int
    product_id: int
    available_stock: int
    updated_at: datetime


# ============================================================================
# REVIEWS
# ============================================================================

class ReviewCreate(CamelModel):
    product_id: int
    customer_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class Review(ReviewCreate):
    id: int
    created_at: datetime


# ============================================================================
# REQUEST PAYLOADS
# ============================================================================

class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6)
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    # Admin accounts are seeded, never self-registered
    role: Literal["customer", "supplier"] = "customer"


class LoginRequest(CamelModel):
    username: str
    password: str


class OrderLine(CamelModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class PlaceOrderRequest(CamelModel):
    items: List[OrderLine] = Field(..., min_length=1)
    payment_reference: Optional[str] = None


class CartUpdateRequest(CamelModel):
    items: List[CartItem] = Field(default_factory=list)


class InventoryUpdateRequest(CamelModel):
    stock: int = Field(..., ge=0)


class ReviewRequest(CamelModel):
    product_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    # Only honoured for admins; customers always review as themselves
    customer_id: Optional[int] = None


class PaymentInitRequest(CamelModel):
    email: EmailStr
    amount: float = Field(..., gt=0)
    payment_method: str = "card"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class UploadResponse(BaseModel):
    url: str


class AdminStats(CamelModel):
    products: int
    active_products: int
    orders: int
    customers: int
    suppliers: int
    reviews: int
    revenue: float
    orders_by_status: Dict[str, int]
