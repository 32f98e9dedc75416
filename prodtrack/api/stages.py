# prodtrack/api/stages.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..schemas import StageIn
from ..services import stages as svc

router = APIRouter(prefix="/api/production-stages", tags=["production-stages"])


@router.get("")
def list_stages(
    is_active: Optional[bool] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_stages(session, ctx, is_active=is_active, page=page, limit=limit)


@router.get("/{stage_id}")
def get_stage(
    stage_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_stage(session, ctx, stage_id)


@router.post("", status_code=201)
def create_stage(
    payload: StageIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.create_stage(session, ctx, payload)


@router.put("/{stage_id}")
def update_stage(
    stage_id: int,
    payload: StageIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.update_stage(session, ctx, stage_id, payload)


@router.delete("/{stage_id}")
def delete_stage(
    stage_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    svc.delete_stage(session, ctx, stage_id)
    return {"success": True}
