# prodtrack/api/appraisals.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..models.quality import AppraisalType
from ..schemas import AppraisalCreate, AppraisalUpdate
from ..services import appraisals as svc

router = APIRouter(prefix="/api/performance-appraisals", tags=["performance-appraisals"])


@router.get("")
def list_appraisals(
    operator_id: Optional[int] = None,
    appraisal_type: Optional[AppraisalType] = None,
    is_resolved: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_appraisals(
        session, ctx,
        operator_id=operator_id,
        appraisal_type=appraisal_type.value if appraisal_type else None,
        is_resolved=is_resolved,
        page=page,
        limit=limit,
    )


@router.get("/{appraisal_id}")
def get_appraisal(
    appraisal_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_appraisal_detail(session, ctx, appraisal_id)


@router.post("", status_code=201)
def create_appraisal(
    payload: AppraisalCreate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.create_appraisal(session, ctx, payload)


@router.put("/{appraisal_id}")
def update_appraisal(
    appraisal_id: int,
    payload: AppraisalUpdate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.update_appraisal(session, ctx, appraisal_id, payload)


@router.delete("/{appraisal_id}")
def delete_appraisal(
    appraisal_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    svc.delete_appraisal(session, ctx, appraisal_id)
    return {"success": True}
