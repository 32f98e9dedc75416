# prodtrack/api/production_records.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context
from ..config import settings
from ..database import get_session
from ..schemas import ProductionRecordCreate, ProductionRecordUpdate
from ..services import production_records as svc

# any authenticated role may record production
router = APIRouter(prefix="/api/production/records", tags=["production-records"])


@router.get("")
def list_records(
    date_: Optional[date] = Query(None, alias="date"),
    operator_id: Optional[int] = None,
    stage_id: Optional[int] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.list_records(
        session, ctx,
        recorded_date=date_,
        operator_id=operator_id,
        stage_id=stage_id,
        page=page,
        limit=limit,
    )


@router.get("/{record_id}")
def get_record(
    record_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_record_detail(session, ctx, record_id)


@router.post("", status_code=201)
def create_record(
    payload: ProductionRecordCreate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Record actual output for a work plan. Rejects above the company limit
    raise a ``reject_limit_exceeded`` alert in the same transaction.
    """
    return svc.create_record(session, ctx, payload)


@router.put("/{record_id}")
def update_record(
    record_id: int,
    payload: ProductionRecordUpdate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.update_record(session, ctx, record_id, payload)


@router.delete("/{record_id}")
def delete_record(
    record_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    svc.delete_record(session, ctx, record_id)
    return {"success": True}
