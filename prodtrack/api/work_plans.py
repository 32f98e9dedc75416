# prodtrack/api/work_plans.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..schemas import WorkPlanIn
from ..services import work_plans as svc

router = APIRouter(prefix="/api/work-plans", tags=["work-plans"])


@router.get("")
def list_work_plans(
    week_start: Optional[date] = None,
    operator_id: Optional[int] = None,
    date_: Optional[date] = Query(None, alias="date"),
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_work_plans(
        session, ctx,
        week_start=week_start,
        operator_id=operator_id,
        planned_date=date_,
        page=page,
        limit=limit,
    )


@router.get("/{plan_id}")
def get_work_plan(
    plan_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_work_plan_detail(session, ctx, plan_id)


@router.post("", status_code=201)
def create_work_plan(
    payload: WorkPlanIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.create_work_plan(session, ctx, payload)


@router.put("/{plan_id}")
def update_work_plan(
    plan_id: int,
    payload: WorkPlanIn,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.update_work_plan(session, ctx, plan_id, payload)


@router.delete("/{plan_id}")
def delete_work_plan(
    plan_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    svc.delete_work_plan(session, ctx, plan_id)
    return {"success": True}
