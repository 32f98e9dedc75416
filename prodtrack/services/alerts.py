# prodtrack/services/alerts.py

import logging
from typing import Optional

from sqlalchemy import case
from sqlmodel import Session, select

from ..auth import RequestContext
from ..models.quality import Alert, SEVERITY_RANK
from ..schemas import AlertCreate
from ..utils.helpers import utcnow
from .crud import commit, get_scoped, list_or_page

logger = logging.getLogger(__name__)


def raise_alert(
    session: Session,
    company_id: int,
    alert_type: str,
    title: str,
    message: str,
    severity: str = "medium",
    related_record_id: Optional[int] = None,
    related_record_type: Optional[str] = None,
) -> Alert:
    """
    Stage an alert on the current unit of work; the caller commits it
    together with whatever triggered it.
    """
    alert = Alert(
        company_id=company_id,
        alert_type=alert_type,
        severity=severity,
        title=title,
        message=message,
        related_record_id=related_record_id,
        related_record_type=related_record_type,
    )
    session.add(alert)
    logger.info("Alert %s raised for company=%s: %s", alert_type, company_id, message)
    return alert


def list_alerts(
    session: Session,
    ctx: RequestContext,
    is_resolved: Optional[bool] = None,
    severity: Optional[str] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    severity_rank = case(SEVERITY_RANK, value=Alert.severity, else_=0)
    stmt = select(Alert).where(Alert.company_id == ctx.company_id)
    if is_resolved is not None:
        stmt = stmt.where(Alert.is_resolved == is_resolved)
    if severity:
        stmt = stmt.where(Alert.severity == severity)
    stmt = stmt.order_by(Alert.is_resolved.asc(), severity_rank.desc(), Alert.created_at.desc(), Alert.id.desc())
    return list_or_page(session, stmt, page, limit)


def get_alert(session: Session, ctx: RequestContext, alert_id: int) -> Alert:
    return get_scoped(session, Alert, alert_id, ctx.company_id, "Alert")


def create_alert(session: Session, ctx: RequestContext, payload: AlertCreate) -> Alert:
    alert = raise_alert(
        session,
        ctx.company_id,
        alert_type=payload.alert_type,
        title=payload.title,
        message=payload.message,
        severity=payload.severity.value,
        related_record_id=payload.related_record_id,
        related_record_type=payload.related_record_type,
    )
    commit(session, alert)
    return alert


def resolve_alert(session: Session, ctx: RequestContext, alert_id: int) -> Alert:
    """unresolved -> resolved. Already resolved alerts are returned untouched."""
    alert = get_alert(session, ctx, alert_id)
    if alert.is_resolved:
        return alert
    alert.is_resolved = True
    alert.resolved_by = ctx.user_id
    alert.resolved_at = utcnow()
    session.add(alert)
    commit(session, alert)
    logger.info("Alert %s resolved by user=%s", alert.id, ctx.user_id)
    return alert
