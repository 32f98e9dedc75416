# prodtrack/api/orders.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..models.orders import OrderStatus
from ..schemas import OrderCreate, OrderUpdate
from ..services import orders as svc

router = APIRouter(prefix="/api/production-orders", tags=["production-orders"])


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = None,
    client_id: Optional[int] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_orders(
        session, ctx,
        status=status.value if status else None,
        client_id=client_id,
        page=page,
        limit=limit,
    )


@router.get("/{order_id}")
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_order_detail(session, ctx, order_id)


@router.post("", status_code=201)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    """Create an order together with its items in one transaction."""
    return svc.create_order(session, ctx, payload)


@router.put("/{order_id}")
def update_order(
    order_id: int,
    payload: OrderUpdate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    """
    Replace the order header and all of its items. The PO number cannot be
    changed; status changes must follow the order lifecycle.
    """
    return svc.update_order(session, ctx, order_id, payload)


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    svc.delete_order(session, ctx, order_id)
    return {"success": True}
