# prodtrack/api/alerts.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, require_admin
from ..config import settings
from ..database import get_session
from ..models.quality import Severity
from ..schemas import AlertCreate
from ..services import alerts as svc

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


@router.get("")
def list_alerts(
    is_resolved: Optional[bool] = None,
    severity: Optional[Severity] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=500),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """Unresolved first, then most severe, then newest."""
    return svc.list_alerts(
        session, ctx,
        is_resolved=is_resolved,
        severity=severity.value if severity else None,
        page=page,
        limit=limit,
    )


@router.get("/{alert_id}")
def get_alert(
    alert_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.get_alert(session, ctx, alert_id)


@router.post("", status_code=201)
def create_alert(
    payload: AlertCreate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.create_alert(session, ctx, payload)


@router.post("/{alert_id}/resolve")
def resolve_alert(
    alert_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.resolve_alert(session, ctx, alert_id)
