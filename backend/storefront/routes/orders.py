import logging
import time
from typing import Dict, List, Optional, Set

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from storefront import schemas
from storefront.auth import get_payments, get_storage, require_roles, require_user
from storefront.payments import PaymentGateway, to_minor_units
from storefront.schemas import OrderStatus, Role
from storefront.storage import Storage
from storefront.telemetry import orders_total, revenue_total, tracer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


def unit_price(product: schemas.Product) -> float:
    """List price less the product's percentage discount."""
    return round(product.price * (1 - product.discount / 100), 2)


def supplier_product_ids(storage: Storage, supplier_id: int) -> Set[int]:
    return {product.id for product in storage.get_products(supplier_id=supplier_id)}


def with_items(
    storage: Storage,
    order: schemas.Order,
    product_ids: Optional[Set[int]] = None,
) -> Optional[schemas.OrderWithItems]:
    """
    Attach the order's items.

    With ``product_ids`` the items are narrowed to those products, and an
    order left with no items is hidden (None).
    """
    items = storage.get_order_items(order.id)
    if product_ids is not None:
        items = [item for item in items if item.product_id in product_ids]
        if not items:
            return None
    return schemas.OrderWithItems(**order.model_dump(), items=items)


def visible_order(storage: Storage, order: schemas.Order, user: schemas.User) -> Optional[schemas.OrderWithItems]:
    """
    The order as ``user`` may see it, or None.

    - admin:    every order, every item
    - customer: own orders only
    - supplier: orders containing their products, narrowed to those items
    """
    if user.role == Role.ADMIN:
        return with_items(storage, order)
    if user.role == Role.CUSTOMER:
        return with_items(storage, order) if order.customer_id == user.id else None
    return with_items(storage, order, supplier_product_ids(storage, user.id))


@router.get("", response_model=List[schemas.OrderWithItems])
def list_orders(
    status: Optional[OrderStatus] = None,
    customer_id: Optional[int] = Query(None, alias="customerId"),
    user: schemas.User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    if user.role == Role.ADMIN:
        return [with_items(storage, o) for o in storage.get_orders(customer_id=customer_id, status=status)]

    if user.role == Role.CUSTOMER:
        return [with_items(storage, o) for o in storage.get_orders(customer_id=user.id, status=status)]

    product_ids = supplier_product_ids(storage, user.id)
    orders = (with_items(storage, o, product_ids) for o in storage.get_orders(customer_id=customer_id, status=status))
    return [order for order in orders if order is not None]


@router.get("/{order_id}", response_model=schemas.OrderWithItems)
def get_order(
    order_id: int,
    user: schemas.User = Depends(require_user),
    storage: Storage = Depends(get_storage),
):
    order = storage.get_order(order_id)
    visible = visible_order(storage, order, user) if order is not None else None
    if visible is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return visible


@router.post("", response_model=schemas.OrderWithItems, status_code=201)
def place_order(
    payload: schemas.PlaceOrderRequest,
    user: schemas.User = Depends(require_roles(Role.CUSTOMER)),
    storage: Storage = Depends(get_storage),
    payments: PaymentGateway = Depends(get_payments),
):
    """
    Place an order for the logged-in customer.

    Steps, each a separate storage write (no rollback if a later one fails):
        1. create the order and its items
        2. lower each product's stock (never below 0) through its inventory row
        3. empty the customer's cart
    """
    start_time = time.time()

    with tracer.start_as_current_span("place_order") as span:
        span.set_attribute("order.customer_id", user.id)
        span.set_attribute("order.item_count", len(payload.items))

        try:
            with tracer.start_as_current_span("validate_products"):
                products: Dict[int, schemas.Product] = {}
                remaining: Dict[int, int] = {}
                lines = []
                total_amount = 0.0
                for line in payload.items:
                    product = products.get(line.product_id) or storage.get_product(line.product_id)
                    if product is None or not product.is_active:
                        span.add_event("product_not_found", {"product_id": line.product_id})
                        raise HTTPException(status_code=404, detail=f"Product {line.product_id} not found")
                    if product.coming_soon:
                        raise HTTPException(status_code=400, detail=f"{product.name} is not available yet")

                    available = remaining.get(product.id, product.stock)
                    if available < line.quantity:
                        span.add_event("insufficient_stock", {
                            "product_id": product.id,
                            "requested": line.quantity,
                            "available": available,
                        })
                        raise HTTPException(status_code=400, detail=f"Insufficient stock for {product.name}")

                    products[product.id] = product
                    remaining[product.id] = available - line.quantity
                    price = unit_price(product)
                    lines.append((product.id, line.quantity, price))
                    total_amount += price * line.quantity

                total_amount = round(total_amount, 2)
                span.set_attribute("order.total_amount", total_amount)

            payment_status = "pending"
            if payload.payment_reference:
                with tracer.start_as_current_span("verify_payment") as payment_span:
                    if storage.get_order_by_payment_reference(payload.payment_reference) is not None:
                        payment_span.add_event("payment_reused", {"reference": payload.payment_reference})
                        orders_total.labels(status='payment_failed').inc()
                        raise HTTPException(status_code=402, detail="Payment reference already used")
                    result = payments.verify_payment(payload.payment_reference)
                    payment_span.set_attribute("payment.status", result["data"]["status"])
                    if not result["success"] or result["data"]["status"] != "success":
                        payment_span.add_event("payment_failed", {"reference": payload.payment_reference})
                        orders_total.labels(status='payment_failed').inc()
                        raise HTTPException(status_code=402, detail="Payment verification failed")
                    if result["data"]["amount"] < to_minor_units(total_amount):
                        orders_total.labels(status='payment_failed').inc()
                        raise HTTPException(status_code=402, detail="Payment does not cover the order total")
                    payment_status = "paid"

            with tracer.start_as_current_span("save_order"):
                order = storage.create_order(schemas.OrderCreate(
                    customer_id=user.id,
                    total_amount=total_amount,
                    payment_status=payment_status,
                    payment_reference=payload.payment_reference,
                ))
                items = [
                    storage.add_order_item(schemas.OrderItemCreate(
                        order_id=order.id,
                        product_id=product_id,
                        quantity=quantity,
                        price_at_purchase=price,
                    ))
                    for product_id, quantity, price in lines
                ]
                span.set_attribute("order.id", order.id)

            with tracer.start_as_current_span("update_inventory"):
                for product_id, stock in remaining.items():
                    storage.update_inventory(products[product_id].supplier_id, product_id, max(0, stock))

            with tracer.start_as_current_span("clear_cart"):
                storage.update_cart(user.id, [])

        except HTTPException:
            raise
        except Exception as e:
            span.record_exception(e)
            span.set_attribute("error", True)
            orders_total.labels(status='error').inc()
            raise

        orders_total.labels(status='success').inc()
        revenue_total.inc(total_amount)

        duration = time.time() - start_time
        span.add_event("order_created", {"order_id": order.id, "total_amount": total_amount, "duration_seconds": duration})
        logger.info("Order %s placed by %s: %d items, total %.2f", order.id, user.username, len(items), total_amount)

        return schemas.OrderWithItems(**order.model_dump(), items=items)


@router.patch("/{order_id}", response_model=schemas.OrderWithItems)
def update_order(
    order_id: int,
    patch: schemas.OrderUpdate,
    user: schemas.User = Depends(require_roles(Role.ADMIN, Role.SUPPLIER)),
    storage: Storage = Depends(get_storage),
):
    """Set status / paymentStatus. Any status may follow any other."""
    order = storage.get_order(order_id)
    if order is None or visible_order(storage, order, user) is None:
        raise HTTPException(status_code=404, detail="Order not found")
    updated = storage.update_order(order_id, patch)
    if updated is None:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s updated by %s: %s", order_id, user.username, patch.model_dump(exclude_unset=True))
    return visible_order(storage, updated, user)


@router.delete("/{order_id}", status_code=204)
def delete_order(
    order_id: int,
    user: schemas.User = Depends(require_roles(Role.ADMIN)),
    storage: Storage = Depends(get_storage),
):
    if not storage.delete_order(order_id):
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s deleted by %s", order_id, user.username)
    return Response(status_code=204)
