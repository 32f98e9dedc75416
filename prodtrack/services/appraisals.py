# prodtrack/services/appraisals.py

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from ..auth import RequestContext
from ..errors import ValidationError
from ..models.master import Operator
from ..models.planning import WorkPlan
from ..models.quality import PerformanceAppraisal
from ..schemas import AppraisalCreate, AppraisalUpdate
from ..utils.helpers import utcnow
from .crud import apply_fields, by_id, commit, get_scoped, paginate
from .operators import get_operator
from .production_records import get_record

logger = logging.getLogger(__name__)


def appraisal_details(session: Session, rows: Sequence[PerformanceAppraisal]) -> List[Dict]:
    operators = by_id(session.exec(
        select(Operator).where(Operator.id.in_({a.operator_id for a in rows} or {0}))
    ).all())
    out = []
    for a in rows:
        op = operators.get(a.operator_id)
        out.append({
            **a.model_dump(),
            "operator": {"id": op.id, "employee_id": op.employee_id, "full_name": op.full_name} if op else None,
        })
    return out


def list_appraisals(
    session: Session,
    ctx: RequestContext,
    operator_id: Optional[int] = None,
    appraisal_type: Optional[str] = None,
    is_resolved: Optional[bool] = None,
    page: int = 1,
    limit: int = 50,
):
    """Always paginated."""
    stmt = select(PerformanceAppraisal).where(PerformanceAppraisal.company_id == ctx.company_id)
    if operator_id:
        stmt = stmt.where(PerformanceAppraisal.operator_id == operator_id)
    if appraisal_type:
        stmt = stmt.where(PerformanceAppraisal.appraisal_type == appraisal_type)
    if is_resolved is not None:
        stmt = stmt.where(PerformanceAppraisal.is_resolved == is_resolved)
    stmt = stmt.order_by(
        PerformanceAppraisal.appraisal_date.desc(),
        PerformanceAppraisal.created_at.desc(),
        PerformanceAppraisal.id.desc(),
    )
    return paginate(session, stmt, page, limit, transform=lambda rows: appraisal_details(session, rows))


def get_appraisal(session: Session, ctx: RequestContext, appraisal_id: int) -> PerformanceAppraisal:
    return get_scoped(session, PerformanceAppraisal, appraisal_id, ctx.company_id, "Performance appraisal")


def get_appraisal_detail(session: Session, ctx: RequestContext, appraisal_id: int) -> Dict:
    return appraisal_details(session, [get_appraisal(session, ctx, appraisal_id)])[0]


def create_appraisal(session: Session, ctx: RequestContext, payload: AppraisalCreate) -> Dict:
    operator = get_operator(session, ctx, payload.operator_id)
    if payload.production_record_id is not None:
        record = get_record(session, ctx, payload.production_record_id)
        plan = session.get(WorkPlan, record.work_plan_id)
        if plan is None or plan.operator_id != operator.id:
            raise ValidationError.for_field(
                "production_record_id", "Production record does not belong to this operator"
            )

    values = payload.model_dump()
    values["appraisal_type"] = payload.appraisal_type.value
    values["severity"] = payload.severity.value if payload.severity else None
    values["appraisal_date"] = payload.appraisal_date or date.today()
    appraisal = PerformanceAppraisal(company_id=ctx.company_id, recorded_by=ctx.user_id, **values)
    session.add(appraisal)
    commit(session, appraisal)
    logger.info(
        "Appraisal %s (%s) recorded for operator=%s", appraisal.id, appraisal.appraisal_type, operator.id
    )
    return appraisal_details(session, [appraisal])[0]


def update_appraisal(session: Session, ctx: RequestContext, appraisal_id: int, payload: AppraisalUpdate) -> Dict:
    """
    Partial update. ``is_resolved`` drives the resolution stamps: resolving
    records who and when, reopening clears both.
    """
    appraisal = get_appraisal(session, ctx, appraisal_id)
    values = payload.model_dump(exclude_unset=True)
    resolved = values.pop("is_resolved", None)
    for key in ("appraisal_type", "severity"):
        if values.get(key) is not None:
            values[key] = values[key].value
    for key in ("appraisal_type", "category", "description"):
        if key in values and values[key] is None:
            values.pop(key)
    apply_fields(appraisal, values)

    if resolved is True and not appraisal.is_resolved:
        appraisal.is_resolved = True
        appraisal.resolved_by = ctx.user_id
        appraisal.resolved_at = utcnow()
        logger.info("Appraisal %s resolved by user=%s", appraisal.id, ctx.user_id)
    elif resolved is False and appraisal.is_resolved:
        appraisal.is_resolved = False
        appraisal.resolved_by = None
        appraisal.resolved_at = None
        logger.info("Appraisal %s reopened by user=%s", appraisal.id, ctx.user_id)

    session.add(appraisal)
    commit(session, appraisal)
    return appraisal_details(session, [appraisal])[0]


def delete_appraisal(session: Session, ctx: RequestContext, appraisal_id: int) -> None:
    appraisal = get_appraisal(session, ctx, appraisal_id)
    session.delete(appraisal)
    commit(session)
    logger.info("Appraisal %s deleted", appraisal_id)
