from fastapi import APIRouter, Depends

from storefront import schemas
from storefront.auth import get_storage, require_user
from storefront.storage import Storage

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=schemas.Cart)
def get_cart(user: schemas.User = Depends(require_user), storage: Storage = Depends(get_storage)):
    cart = storage.get_cart(user.id)
    if cart is None:
        # Nothing stored yet: answer with an empty cart rather than 404
        return schemas.Cart(user_id=user.id, items=[])
    return cart


@router.put("", response_model=schemas.Cart)
def replace_cart(
    payload: schemas.CartUpdateRequest,
    user: schemas.User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    """The cart is replaced wholesale; there is no per-item endpoint."""
    return storage.update_cart(user.id, payload.items)
