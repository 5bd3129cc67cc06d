import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from storefront import schemas
from storefront.auth import get_storage, require_roles
from storefront.routes.products import get_managed_product
from storefront.schemas import Role
from storefront.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


@router.get("", response_model=List[schemas.SupplierInventory])
def list_inventory(
    supplier_id: Optional[int] = Query(None, alias="supplierId"),
    user: schemas.User = Depends(require_roles(Role.ADMIN, Role.SUPPLIER)),
    storage: Storage = Depends(get_storage),
):
    """Suppliers see their own ledger; admins one supplier's or everyone's."""
    if user.role == Role.SUPPLIER:
        return storage.get_inventory(user.id)
    if supplier_id is not None:
        return storage.get_inventory(supplier_id)
    rows = []
    for supplier in storage.get_users_by_role(Role.SUPPLIER):
        rows.extend(storage.get_inventory(supplier.id))
    return rows


@router.put("/{product_id}", response_model=schemas.SupplierInventory)
def set_inventory(
    product_id: int,
    payload: schemas.InventoryUpdateRequest,
    user: schemas.User = Depends(require_roles(Role.ADMIN, Role.SUPPLIER)),
    storage: Storage = Depends(get_storage),
):
    product = get_managed_product(storage, product_id, user)
    row = storage.update_inventory(product.supplier_id, product.id, payload.stock)
    logger.info("Inventory for product %s set to %d by %s", product.id, payload.stock, user.username)
    return row
