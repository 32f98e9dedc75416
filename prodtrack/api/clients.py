# prodtrack/api/clients.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..schemas import ClientIn
from ..services import clients as svc

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("")
def list_clients(
    is_active: Optional[bool] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_clients(session, ctx, is_active=is_active, page=page, limit=limit)


@router.get("/{client_id}")
def get_client(
    client_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_client(session, ctx, client_id)


@router.post("", status_code=201)
def create_client(
    payload: ClientIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.create_client(session, ctx, payload)


@router.put("/{client_id}")
def update_client(
    client_id: int,
    payload: ClientIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.update_client(session, ctx, client_id, payload)


@router.delete("/{client_id}")
def delete_client(
    client_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    svc.delete_client(session, ctx, client_id)
    return {"success": True}
