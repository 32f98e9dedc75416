# prodtrack/api/products.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..schemas import ProductIn
from ..services import products as svc

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
def list_products(
    is_active: Optional[bool] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_products(session, ctx, is_active=is_active, page=page, limit=limit)


@router.get("/{product_id}")
def get_product(
    product_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_product(session, ctx, product_id)


@router.post("", status_code=201)
def create_product(
    payload: ProductIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.create_product(session, ctx, payload)


@router.put("/{product_id}")
def update_product(
    product_id: int,
    payload: ProductIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.update_product(session, ctx, product_id, payload)


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    svc.delete_product(session, ctx, product_id)
    return {"success": True}
