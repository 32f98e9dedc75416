# prodtrack/api/reports.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context
from ..database import get_session
from ..services import reports as svc

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/production")
def production_report(
    start: Optional[date] = None,
    end: Optional[date] = None,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Target achievement per day, operator and product performance and the
    reject breakdown for ``start``..``end`` (default: the current week).
    """
    return svc.production_report(session, ctx, start=start, end=end)


@router.get("/monthly-targets")
def monthly_targets_report(
    month: Optional[str] = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.monthly_targets_report(session, ctx, month=month)


@router.get("/dashboard")
def dashboard(
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.dashboard(session, ctx)
