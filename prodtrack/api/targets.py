# prodtrack/api/targets.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..schemas import MonthlyTargetIn
from ..services import targets as svc

router = APIRouter(prefix="/api/monthly-targets", tags=["monthly-targets"])


@router.get("")
def list_targets(
    month: Optional[str] = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    product_id: Optional[int] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_targets(session, ctx, month=month, product_id=product_id, page=page, limit=limit)


@router.get("/{target_id}")
def get_target(
    target_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_target(session, ctx, target_id)


@router.post("", status_code=201)
def create_target(
    payload: MonthlyTargetIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.create_target(session, ctx, payload)


@router.put("/{target_id}")
def update_target(
    target_id: int,
    payload: MonthlyTargetIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.update_target(session, ctx, target_id, payload)


@router.delete("/{target_id}")
def delete_target(
    target_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    svc.delete_target(session, ctx, target_id)
    return {"success": True}
