# prodtrack/api/operators.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..schemas import OperatorIn
from ..services import operators as svc

router = APIRouter(prefix="/api/operators", tags=["operators"])


@router.get("")
def list_operators(
    is_active: Optional[bool] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_operators(session, ctx, is_active=is_active, page=page, limit=limit)


@router.get("/{operator_id}")
def get_operator(
    operator_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_operator(session, ctx, operator_id)


@router.post("", status_code=201)
def create_operator(
    payload: OperatorIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.create_operator(session, ctx, payload)


@router.put("/{operator_id}")
def update_operator(
    operator_id: int,
    payload: OperatorIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.update_operator(session, ctx, operator_id, payload)


@router.delete("/{operator_id}")
def delete_operator(
    operator_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    svc.delete_operator(session, ctx, operator_id)
    return {"success": True}
