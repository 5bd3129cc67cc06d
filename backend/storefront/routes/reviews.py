from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from storefront import schemas
from storefront.auth import get_storage, require_roles
from storefront.schemas import Role
from storefront.storage import Storage

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("", response_model=List[schemas.Review])
def list_reviews(
    product_id: Optional[int] = Query(None, alias="productId"),
    storage: Storage = Depends(get_storage),
):
    return storage.get_reviews(product_id)


@router.get("/top", response_model=List[schemas.Review])
def top_reviews(limit: int = Query(5, ge=1, le=50), storage: Storage = Depends(get_storage)):
    return storage.get_top_reviews(limit)


@router.post("", response_model=schemas.Review, status_code=201)
def create_review(
    payload: schemas.ReviewRequest,
    user: schemas.User = Depends(require_roles(Role.CUSTOMER, Role.ADMIN)),
    storage: Storage = Depends(get_storage),
):
    if storage.get_product(payload.product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    # Admins may post on behalf of nobody (customer_id 0 / missing -> stored as null)
    customer_id = user.id if user.role == Role.CUSTOMER else (payload.customer_id or 0)
    return storage.create_review(schemas.ReviewCreate(
        product_id=payload.product_id,
        customer_id=customer_id,
        rating=payload.rating,
        comment=payload.comment,
    ))


@router.delete("/{review_id}", status_code=204)
def delete_review(
    review_id: int,
    user: schemas.User = Depends(require_roles(Role.ADMIN)),
    storage: Storage = Depends(get_storage),
):
    if not storage.delete_review(review_id):
        raise HTTPException(status_code=404, detail="Review not found")
    return Response(status_code=204)
