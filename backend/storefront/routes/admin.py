from collections import Counter
from typing import List, Optional

from fastapi import APIRouter, Depends

from storefront import schemas
from storefront.auth import get_storage, require_roles
from storefront.schemas import OrderStatus, Role
from storefront.storage import Storage

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_roles(Role.ADMIN))],
)


@router.get("/users", response_model=List[schemas.UserPublic])
def list_users(role: Optional[Role] = None, storage: Storage = Depends(get_storage)):
    roles = [role] if role is not None else list(Role)
    users = [user for r in roles for user in storage.get_users_by_role(r)]
    return sorted(users, key=lambda user: user.id)


@router.get("/stats", response_model=schemas.AdminStats)
def stats(storage: Storage = Depends(get_storage)):
    """Back-office dashboard figures, recomputed on every call."""
    products = storage.get_products()
    orders = storage.get_orders()
    by_status = Counter(order.status.value for order in orders)
    return schemas.AdminStats(
        products=len(products),
        active_products=sum(1 for p in products if p.is_active),
        orders=len(orders),
        customers=len(storage.get_users_by_role(Role.CUSTOMER)),
        suppliers=len(storage.get_users_by_role(Role.SUPPLIER)),
        reviews=len(storage.get_reviews()),
        revenue=round(sum(o.total_amount for o in orders if o.status != OrderStatus.CANCELLED), 2),
        orders_by_status={status.value: by_status.get(status.value, 0) for status in OrderStatus},
    )
