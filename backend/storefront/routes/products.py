import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from storefront import schemas
from storefront.auth import get_current_user, get_storage, require_roles
from storefront.schemas import Role
from storefront.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


def can_manage(user: Optional[schemas.User], product: schemas.Product) -> bool:
    """Admins manage every product; suppliers only their own."""
    if user is None:
        return False
    return user.role == Role.ADMIN or (user.role == Role.SUPPLIER and product.supplier_id == user.id)


def get_managed_product(storage: Storage, product_id: int, user: schemas.User) -> schemas.Product:
    product = storage.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if not can_manage(user, product):
        raise HTTPException(status_code=403, detail="Forbidden")
    return product


@router.get("", response_model=List[schemas.Product])
def list_products(
    category: Optional[str] = None,
    supplier_id: Optional[int] = Query(None, alias="supplierId"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    coming_soon: Optional[bool] = Query(None, alias="comingSoon"),
    user: Optional[schemas.User] = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    Browse the catalogue.

    Shoppers only see active products. Admins, and suppliers listing their
    own products, can filter on isActive freely.
    """
    sees_inactive = user is not None and (
        user.role == Role.ADMIN or (user.role == Role.SUPPLIER and supplier_id == user.id)
    )
    if not sees_inactive:
        is_active = True
    return storage.get_products(
        category=category,
        supplier_id=supplier_id,
        is_active=is_active,
        coming_soon=coming_soon,
    )


@router.get("/trending", response_model=List[schemas.Product])
def trending_products(limit: int = Query(4, ge=1, le=50), storage: Storage = Depends(get_storage)):
    return storage.get_trending_products(limit)


@router.get("/top-selling", response_model=List[schemas.Product])
def top_selling_products(limit: int = Query(4, ge=1, le=50), storage: Storage = Depends(get_storage)):
    return storage.get_top_selling_products(limit)


@router.get("/{product_id}", response_model=schemas.Product)
def get_product(
    product_id: int,
    user: Optional[schemas.User] = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    product = storage.get_product(product_id)
    if product is None or (not product.is_active and not can_manage(user, product)):
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/{product_id}/reviews", response_model=List[schemas.Review])
def product_reviews(product_id: int, storage: Storage = Depends(get_storage)):
    if storage.get_product(product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return storage.get_reviews(product_id)


@router.post("", response_model=schemas.Product, status_code=201)
def create_product(
    payload: schemas.ProductCreate,
    user: schemas.User = Depends(require_roles(Role.ADMIN, Role.SUPPLIER)),
    storage: Storage = Depends(get_storage),
):
    if user.role == Role.SUPPLIER:
        supplier_id = user.id
    elif payload.supplier_id is not None:
        owner = storage.get_user(payload.supplier_id)
        if owner is None or owner.role != Role.SUPPLIER:
            raise HTTPException(status_code=400, detail="supplierId must reference a supplier")
        supplier_id = owner.id
    else:
        supplier_id = user.id

    product = storage.create_product(payload.model_copy(update={"supplier_id": supplier_id}))
    # Every product starts with a matching inventory row
    storage.update_inventory(supplier_id, product.id, product.stock)
    logger.info("Product %s created by %s for supplier %s", product.id, user.username, supplier_id)
    return product


@router.patch("/{product_id}", response_model=schemas.Product)
def update_product(
    product_id: int,
    patch: schemas.ProductUpdate,
    user: schemas.User = Depends(require_roles(Role.ADMIN, Role.SUPPLIER)),
    storage: Storage = Depends(get_storage),
):
    get_managed_product(storage, product_id, user)
    updated = storage.update_product(product_id, patch)
    if updated is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if patch.stock is not None:
        # Keep the supplier ledger in step; this also rewrites Product.stock
        storage.update_inventory(updated.supplier_id, product_id, patch.stock)
        updated = storage.get_product(product_id)
    return updated


@router.delete("/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    user: schemas.User = Depends(require_roles(Role.ADMIN, Role.SUPPLIER)),
    storage: Storage = Depends(get_storage),
):
    get_managed_product(storage, product_id, user)
    if not storage.delete_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Product %s deleted by %s", product_id, user.username)
    return Response(status_code=204)
