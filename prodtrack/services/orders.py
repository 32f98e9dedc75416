# prodtrack/services/orders.py
"""
Production orders and their items.

An order and its items are always written together: create stages the order,
flushes to get its id and stages the items in the same transaction; update
replaces every item (delete-all-then-recreate) in one transaction as well.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlmodel import Session, delete, select

from ..auth import RequestContext
from ..config import settings
from ..errors import ValidationError
from ..models.master import Client, Product
from ..models.orders import ORDER_TRANSITIONS, OrderStatus, ProductionOrder, ProductionOrderItem
from ..models.planning import WorkPlan
from ..schemas import OrderCreate, OrderItemIn, OrderUpdate
from ..utils.helpers import round_half_up, utcnow
from .crud import atomic, ensure_no_dependents, ensure_unique, get_scoped, list_or_page
from .clients import get_client

logger = logging.getLogger(__name__)


def forming_quantity(qty_ordered: int, margin: Optional[Decimal] = None) -> int:
    """
    Units to start production with: ordered quantity plus the
    shrinkage/defect margin, rounded half-up (50 -> 58 at 15%).
    """
    margin = settings.forming_margin if margin is None else margin
    return round_half_up(Decimal(qty_ordered) * (Decimal(1) + margin))


def check_transition(current: str, new: OrderStatus) -> None:
    cur = OrderStatus(current)
    if new == cur:
        return
    if new not in ORDER_TRANSITIONS[cur]:
        raise ValidationError.for_field(
            "status", f"Cannot change order status from {cur.value} to {new.value}"
        )


def _check_products(session: Session, ctx: RequestContext, items: Sequence[OrderItemIn]) -> None:
    wanted = {i.product_id for i in items}
    found = set(session.exec(
        select(Product.id).where(Product.company_id == ctx.company_id, Product.id.in_(wanted))
    ).all())
    missing = sorted(wanted - found)
    if missing:
        raise ValidationError.for_field(
            "items", f"Unknown product id(s): {', '.join(str(m) for m in missing)}"
        )


def _make_item(order_id: int, item: OrderItemIn) -> ProductionOrderItem:
    qty_forming = item.qty_forming if item.qty_forming is not None else forming_quantity(item.qty_ordered)
    return ProductionOrderItem(
        production_order_id=order_id,
        product_id=item.product_id,
        qty_ordered=item.qty_ordered,
        qty_forming=qty_forming,
        notes=item.notes,
    )


# ---------- read ----------

def order_details(session: Session, orders: Sequence[ProductionOrder]) -> List[Dict]:
    """
    Orders with client summary, items (with product summary) and the number
    of work plans. Lookups are batched per call.
    """
    if not orders:
        return []
    order_ids = [o.id for o in orders]

    clients = {
        c.id: c for c in session.exec(
            select(Client).where(Client.id.in_({o.client_id for o in orders}))
        ).all()
    }
    items = session.exec(
        select(ProductionOrderItem)
        .where(ProductionOrderItem.production_order_id.in_(order_ids))
        .order_by(ProductionOrderItem.id)
    ).all()
    products = {
        p.id: p for p in session.exec(
            select(Product).where(Product.id.in_({i.product_id for i in items} or {0}))
        ).all()
    }
    plan_counts = dict(session.exec(
        select(WorkPlan.production_order_id, func.count())
        .where(WorkPlan.production_order_id.in_(order_ids))
        .group_by(WorkPlan.production_order_id)
    ).all())

    items_by_order: Dict[int, List[Dict]] = {}
    for i in items:
        p = products.get(i.product_id)
        items_by_order.setdefault(i.production_order_id, []).append({
            **i.model_dump(),
            "product": {"id": p.id, "code": p.code, "name": p.name} if p else None,
        })

    results = []
    for o in orders:
        c = clients.get(o.client_id)
        results.append({
            **o.model_dump(),
            "client": {"id": c.id, "name": c.name, "department": c.department} if c else None,
            "items": items_by_order.get(o.id, []),
            "work_plan_count": plan_counts.get(o.id, 0),
        })
    return results


def list_orders(
    session: Session,
    ctx: RequestContext,
    status: Optional[str] = None,
    client_id: Optional[int] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    stmt = select(ProductionOrder).where(ProductionOrder.company_id == ctx.company_id)
    if status:
        stmt = stmt.where(ProductionOrder.status == status)
    if client_id:
        stmt = stmt.where(ProductionOrder.client_id == client_id)
    stmt = stmt.order_by(
        ProductionOrder.priority.desc(),
        ProductionOrder.delivery_date.asc(),
        ProductionOrder.created_at.desc(),
        ProductionOrder.id.desc(),
    )
    return list_or_page(session, stmt, page, limit, transform=lambda rows: order_details(session, rows))


def get_order(session: Session, ctx: RequestContext, order_id: int) -> ProductionOrder:
    return get_scoped(session, ProductionOrder, order_id, ctx.company_id, "Production order")


def get_order_detail(session: Session, ctx: RequestContext, order_id: int) -> Dict:
    return order_details(session, [get_order(session, ctx, order_id)])[0]


# ---------- write ----------

def create_order(session: Session, ctx: RequestContext, payload: OrderCreate) -> Dict:
    get_client(session, ctx, payload.client_id)
    _check_products(session, ctx, payload.items)
    ensure_unique(
        session, ProductionOrder, "PO number already exists",
        ProductionOrder.company_id == ctx.company_id,
        ProductionOrder.po_no == payload.po_no,
    )

    order = ProductionOrder(
        company_id=ctx.company_id,
        client_id=payload.client_id,
        po_no=payload.po_no,
        delivery_date=payload.delivery_date,
        priority=payload.priority,
        status=payload.status.value,
        notes=payload.notes,
    )
    with atomic(session):
        session.add(order)
        session.flush()
        for item in payload.items:
            session.add(_make_item(order.id, item))

    session.refresh(order)
    logger.info("Order %s (%s) created with %d item(s)", order.id, order.po_no, len(payload.items))
    return order_details(session, [order])[0]


def _relink_work_plans(session: Session, order_id: int, stale_plans: Sequence[WorkPlan]) -> None:
    """
    Point plans that referenced a replaced item at the new item for the same
    product; plans whose product left the order keep only the order link.
    """
    if not stale_plans:
        return
    new_items = session.exec(
        select(ProductionOrderItem).where(ProductionOrderItem.production_order_id == order_id)
    ).all()
    by_product: Dict[int, List[ProductionOrderItem]] = {}
    for i in new_items:
        by_product.setdefault(i.product_id, []).append(i)
    for plan in stale_plans:
        candidates = by_product.get(plan.product_id, [])
        plan.production_order_item_id = candidates[0].id if len(candidates) == 1 else None
        session.add(plan)


def update_order(session: Session, ctx: RequestContext, order_id: int, payload: OrderUpdate) -> Dict:
    order = get_order(session, ctx, order_id)
    get_client(session, ctx, payload.client_id)
    _check_products(session, ctx, payload.items)
    if payload.status is not None:
        check_transition(order.status, payload.status)

    linked_plans = session.exec(
        select(WorkPlan).where(
            WorkPlan.production_order_id == order.id,
            WorkPlan.production_order_item_id.is_not(None),
        )
    ).all()

    with atomic(session):
        order.client_id = payload.client_id
        order.delivery_date = payload.delivery_date
        order.priority = payload.priority
        order.notes = payload.notes
        if payload.status is not None:
            order.status = payload.status.value
        order.updated_at = utcnow()
        session.add(order)

        for plan in linked_plans:
            plan.production_order_item_id = None
            session.add(plan)
        session.flush()

        session.exec(delete(ProductionOrderItem).where(ProductionOrderItem.production_order_id == order.id))
        for item in payload.items:
            session.add(_make_item(order.id, item))
        session.flush()
        _relink_work_plans(session, order.id, linked_plans)

    session.refresh(order)
    logger.info("Order %s updated (status=%s, %d item(s))", order.id, order.status, len(payload.items))
    return order_details(session, [order])[0]


def delete_order(session: Session, ctx: RequestContext, order_id: int) -> None:
    order = get_order(session, ctx, order_id)
    ensure_no_dependents(session, [
        (WorkPlan, WorkPlan.production_order_id == order.id,
         "Cannot delete order with existing work plans"),
    ])
    with atomic(session):
        session.exec(delete(ProductionOrderItem).where(ProductionOrderItem.production_order_id == order.id))
        session.delete(order)
    logger.info("Order %s deleted", order_id)
