# Overview: Order placement, pricing snapshots, status machine and stock reservation.

"""
Order engine.

Placement validates everything before the first write: member standing,
ship-to state, item shape, product availability and per-product shipping
restrictions. Totals come from the tiered price schedule, rounded per line
to cents; the order total is the exact sum of line subtotals.

Status machine (admin):

    pending_review -> approved -> processing -> shipped -> delivered
    any non-terminal -> canceled

Forward moves may skip steps; every milestone passed gets its timestamp
if it is still empty. Leaving pending_review reserves stock for tracked
products; an admin cancel before shipment releases it.

Members may only cancel their own order while it is pending_review.
"""

from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal

from sqlalchemy import or_, update
from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..errors import (
    AuthorizationError,
    ComplianceError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..models import Member, Order, OrderItem, Product
from . import notification_service
from .concurrency import lock_for_update
from .membership_service import is_restricted_state
from .pricing import line_subtotal, price_for
from .sequence_service import next_order_number
from wholesale.money import CENT, quantize_money, to_decimal
from wholesale.time_utils import utcnow

ORDER_FLOW = ("pending_review", "approved", "processing", "shipped", "delivered")
ORDER_STATUSES = ORDER_FLOW + ("canceled",)
TERMINAL_STATUSES = {"delivered", "canceled"}

# status -> timestamp column stamped when the order reaches or passes it
MILESTONES = (
    ("approved", "approved_at"),
    ("shipped", "shipped_at"),
    ("delivered", "delivered_at"),
)

MAX_ITEMS = 100
MAX_QUANTITY_LBS = Decimal("100000")


def _parse_items(items) -> list[tuple[int, Decimal]]:
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item required")
    if len(items) > MAX_ITEMS:
        raise ValidationError(f"An order may contain at most {MAX_ITEMS} items")

    parsed: list[tuple[int, Decimal]] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")

        product_id = item.get("product_id")
        if isinstance(product_id, str) and product_id.strip().isdigit():
            product_id = int(product_id.strip())
        if not isinstance(product_id, int) or isinstance(product_id, bool):
            raise ValidationError(f"items[{index}].product_id must be an integer")

        try:
            qty = to_decimal(item.get("quantity_lbs"))
        except ValueError:
            raise ValidationError(f"items[{index}].quantity_lbs must be a number")
        if qty <= 0:
            raise ValidationError(f"items[{index}].quantity_lbs must be greater than 0")
        if qty > MAX_QUANTITY_LBS:
            raise ValidationError(f"items[{index}].quantity_lbs is too large")
        if qty != qty.quantize(CENT):
            raise ValidationError(f"items[{index}].quantity_lbs allows at most 2 decimal places")

        parsed.append((product_id, qty))
    return parsed


def place_order(
    member_id: int,
    items,
    payment_method: str | None = None,
    ship_state: str | None = None,
    notes: str | None = None,
) -> Order:
    """
    Price and persist a new pending_review order for an active member.

    Raises ValidationError, AuthorizationError or ComplianceError before
    anything is written.
    """
    parsed = _parse_items(items)

    member = db.session.get(Member, member_id)
    if member is None:
        raise NotFoundError("Member not found")
    if member.status != "active":
        raise AuthorizationError(
            "Active membership required",
            details={"member_status": member.status},
        )

    ship_state = (ship_state or member.shipping_state or "").strip().upper()
    if len(ship_state) != 2:
        raise ValidationError("ship_state must be a two-letter state code")
    if is_restricted_state(ship_state):
        raise ComplianceError(
            f"Cannot ship to {ship_state}: state restrictions apply",
            details={"ship_state": ship_state},
        )

    product_ids = {product_id for product_id, _ in parsed}
    products = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    }

    lines: list[dict] = []
    for product_id, qty in parsed:
        product = products.get(product_id)
        if product is None or product.status != "active" or not product.farm_bill_compliant:
            raise ValidationError(f"Product {product_id} not found or inactive")
        if ship_state in product.restricted_state_codes:
            raise ComplianceError(
                f"{product.product_name} cannot ship to {ship_state}",
                details={"product_id": product.id, "ship_state": ship_state},
            )

        unit_price = price_for(product, qty)
        lines.append({
            "product": product,
            "quantity_lbs": qty,
            "price_per_lb": unit_price,
            "subtotal": line_subtotal(unit_price, qty),
        })

    subtotal = quantize_money(sum((line["subtotal"] for line in lines), Decimal("0")))

    order_number = next_order_number()
    now = utcnow()

    order = Order(
        order_number=order_number,
        member_id=member.id,
        status="pending_review",
        payment_method=(payment_method or "").strip() or None,
        ship_state=ship_state,
        notes=(notes or "").strip() or None,
        subtotal=subtotal,
        total=subtotal,
        inventory_reserved=False,
        created_at=now,
        updated_at=now,
    )
    for line in lines:
        product = line["product"]
        order.items.append(OrderItem(
            product_id=product.id,
            sku=product.sku,
            product_name=product.product_name,
            quantity_lbs=line["quantity_lbs"],
            price_per_lb=line["price_per_lb"],
            subtotal=line["subtotal"],
        ))

    db.session.add(order)
    db.session.flush()
    notes_out = notification_service.notify_order_submitted(order, member)
    db.session.commit()

    notification_service.after_commit(notes_out)
    return order


# =============================================================================
# Inventory
# =============================================================================

def _quantities_by_product(order: Order) -> "OrderedDict[int, Decimal]":
    totals: "OrderedDict[int, Decimal]" = OrderedDict()
    for item in order.items:
        totals[item.product_id] = totals.get(item.product_id, Decimal("0")) + to_decimal(item.quantity_lbs)
    return totals


def _reserve_stock(order: Order) -> None:
    """Deduct tracked stock for every line. All-or-nothing."""
    needed = _quantities_by_product(order)
    products = (
        lock_for_update(db.session.query(Product).filter(Product.id.in_(list(needed))))
        .order_by(Product.id.asc())
        .all()
    )

    short = []
    for product in products:
        if product.inventory_lbs is None:
            continue
        if to_decimal(product.inventory_lbs) < needed[product.id]:
            short.append({
                "product_id": product.id,
                "sku": product.sku,
                "available_lbs": str(product.inventory_lbs),
                "requested_lbs": str(needed[product.id]),
            })
    if short:
        raise ConflictError("Insufficient inventory to approve order", details={"shortages": short})

    for product in products:
        if product.inventory_lbs is not None:
            product.inventory_lbs = to_decimal(product.inventory_lbs) - needed[product.id]
    order.inventory_reserved = True


def _release_stock(order: Order) -> None:
    needed = _quantities_by_product(order)
    products = lock_for_update(db.session.query(Product).filter(Product.id.in_(list(needed)))).all()
    for product in products:
        if product.inventory_lbs is not None:
            product.inventory_lbs = to_decimal(product.inventory_lbs) + needed[product.id]
    order.inventory_reserved = False


# =============================================================================
# Status machine
# =============================================================================

def check_transition(current: str, target: str) -> None:
    if target not in ORDER_STATUSES:
        raise ValidationError("Invalid status", details={"allowed": list(ORDER_STATUSES)})
    if current in TERMINAL_STATUSES:
        raise ValidationError(f"Order is {current} and can no longer change status")
    if target == "canceled":
        return
    if ORDER_FLOW.index(target) <= ORDER_FLOW.index(current):
        raise ValidationError(
            f"Invalid transition: {current} -> {target}",
            details={"from": current, "to": target},
        )


def change_status(order_id: int, new_status: str) -> Order:
    """Admin status change with timestamps, stock and member e-mail."""
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")

    check_transition(order.status, new_status)
    now = utcnow()

    if new_status == "canceled":
        if order.inventory_reserved and order.shipped_at is None:
            _release_stock(order)
        order.canceled_at = order.canceled_at or now
    else:
        if order.status == "pending_review" and not order.inventory_reserved:
            _reserve_stock(order)
        reached = ORDER_FLOW.index(new_status)
        for status, column in MILESTONES:
            if ORDER_FLOW.index(status) <= reached and getattr(order, column) is None:
                setattr(order, column, now)

    order.status = new_status
    order.updated_at = now

    note = notification_service.notify_order_status_change(order, order.member, new_status)
    db.session.commit()

    notification_service.after_commit([note])
    return order


def cancel_own_order(order_id: int, member_id: int) -> Order:
    """
    Member self-cancel.

    Single conditional UPDATE on (id, member_id, status=pending_review);
    wrong owner, wrong status and unknown id all fail the same way.
    """
    now = utcnow()
    stmt = (
        update(Order)
        .where(
            Order.id == order_id,
            Order.member_id == member_id,
            Order.status == "pending_review",
        )
        .values(status="canceled", canceled_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount != 1:
        db.session.rollback()
        raise NotFoundError("Order not found or cannot be canceled")
    db.session.commit()

    return db.session.get(Order, order_id)


# =============================================================================
# Reads
# =============================================================================

def _base_query():
    return db.session.query(Order).options(
        joinedload(Order.member),
        selectinload(Order.items),
    )


def list_orders(principal, status: str | None = None, search: str | None = None) -> list[dict]:
    query = _base_query()

    if principal.is_admin:
        if status and status != "all":
            query = query.filter(Order.status == status)
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.join(Member, Order.member_id == Member.id).filter(or_(
                db.func.lower(Order.order_number).like(pattern),
                db.func.lower(Member.full_name).like(pattern),
            ))
    else:
        query = query.filter(Order.member_id == principal.id)
        if status and status != "all":
            query = query.filter(Order.status == status)

    rows = query.order_by(Order.created_at.desc(), Order.id.desc()).all()
    return [o.to_dict(include_items=True, include_member=principal.is_admin) for o in rows]


def get_order(order_id: int, principal) -> Order:
    query = _base_query().filter(Order.id == order_id)
    if not principal.is_admin:
        query = query.filter(Order.member_id == principal.id)
    order = query.first()
    if order is None:
        raise NotFoundError("Order not found")
    return order
