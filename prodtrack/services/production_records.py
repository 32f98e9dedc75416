# prodtrack/services/production_records.py
"""
Daily production results against a work plan.

The quantity invariant (good + reject == completed) is enforced by the request
models before anything reaches this module. Creating a record, or changing its
reject quantity, re-runs the reject limit rule and stages the resulting alert
on the same commit as the record. A record never carries more than one open
reject alert.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from ..auth import RequestContext
from ..models.master import Operator, Product, ProductionStage
from ..models.planning import ProductionRecord, WorkPlan
from ..models.quality import Alert, PerformanceAppraisal, Severity
from ..models.tenant import Company, User
from ..schemas import ProductionRecordCreate, ProductionRecordUpdate
from .alerts import raise_alert
from .crud import apply_fields, atomic, by_id, commit, ensure_no_dependents, ensure_unique, get_scoped, list_or_page
from .work_plans import get_work_plan

logger = logging.getLogger(__name__)

REJECT_LIMIT_ALERT = "reject_limit_exceeded"


def check_reject_limit(session: Session, record: ProductionRecord) -> None:
    """Stage a high-severity alert when the record's rejects exceed the company limit."""
    company = session.get(Company, record.company_id)
    limit = company.get_settings().reject_limit
    if record.reject_quantity <= limit:
        return
    open_alert = session.exec(
        select(Alert).where(
            Alert.company_id == record.company_id,
            Alert.alert_type == REJECT_LIMIT_ALERT,
            Alert.related_record_id == record.id,
            Alert.is_resolved == False,  # noqa: E712
        )
    ).first()
    if open_alert is not None:
        logger.debug("Record %s already has open alert %s", record.id, open_alert.id)
        return
    raise_alert(
        session,
        record.company_id,
        alert_type=REJECT_LIMIT_ALERT,
        severity=Severity.HIGH.value,
        title="Reject limit exceeded",
        message=(
            f"Reject quantity {record.reject_quantity} exceeds the limit of {limit} "
            f"on {record.recorded_date.isoformat()}"
            + (f" ({record.reject_reason})" if record.reject_reason else "")
        ),
        related_record_id=record.id,
        related_record_type="production_record",
    )


def record_details(session: Session, records: Sequence[ProductionRecord]) -> List[Dict]:
    if not records:
        return []
    plans = by_id(session.exec(
        select(WorkPlan).where(WorkPlan.id.in_({r.work_plan_id for r in records}))
    ).all())
    operators = by_id(session.exec(
        select(Operator).where(Operator.id.in_({p.operator_id for p in plans.values()} or {0}))
    ).all())
    products = by_id(session.exec(
        select(Product).where(Product.id.in_({p.product_id for p in plans.values()} or {0}))
    ).all())
    stages = by_id(session.exec(
        select(ProductionStage).where(ProductionStage.id.in_({p.production_stage_id for p in plans.values()} or {0}))
    ).all())
    users = by_id(session.exec(
        select(User).where(User.id.in_({r.recorded_by for r in records}))
    ).all())

    out = []
    for r in records:
        plan = plans.get(r.work_plan_id)
        op = operators.get(plan.operator_id) if plan else None
        prod = products.get(plan.product_id) if plan else None
        st = stages.get(plan.production_stage_id) if plan else None
        user = users.get(r.recorded_by)
        out.append({
            **r.model_dump(),
            "work_plan": {
                "id": plan.id,
                "planned_date": plan.planned_date,
                "target_quantity": plan.target_quantity,
                "operator": {"id": op.id, "full_name": op.full_name} if op else None,
                "product": {"id": prod.id, "code": prod.code, "name": prod.name} if prod else None,
                "stage": {"id": st.id, "code": st.code, "name": st.name} if st else None,
            } if plan else None,
            "recorded_by_name": user.full_name if user else None,
        })
    return out


def list_records(
    session: Session,
    ctx: RequestContext,
    recorded_date: Optional[date] = None,
    operator_id: Optional[int] = None,
    stage_id: Optional[int] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    stmt = (
        select(ProductionRecord)
        .join(WorkPlan, WorkPlan.id == ProductionRecord.work_plan_id)
        .where(ProductionRecord.company_id == ctx.company_id)
    )
    if recorded_date:
        stmt = stmt.where(ProductionRecord.recorded_date == recorded_date)
    if operator_id:
        stmt = stmt.where(WorkPlan.operator_id == operator_id)
    if stage_id:
        stmt = stmt.where(WorkPlan.production_stage_id == stage_id)
    stmt = stmt.order_by(
        ProductionRecord.recorded_date.desc(),
        ProductionRecord.created_at.desc(),
        ProductionRecord.id.desc(),
    )
    return list_or_page(session, stmt, page, limit, transform=lambda rows: record_details(session, rows))


def get_record(session: Session, ctx: RequestContext, record_id: int) -> ProductionRecord:
    return get_scoped(session, ProductionRecord, record_id, ctx.company_id, "Production record")


def get_record_detail(session: Session, ctx: RequestContext, record_id: int) -> Dict:
    return record_details(session, [get_record(session, ctx, record_id)])[0]


def _check_one_per_day(session: Session, work_plan_id: int, recorded_date: date, exclude_id=None) -> None:
    ensure_unique(
        session, ProductionRecord, "A record for this work plan and date already exists",
        ProductionRecord.work_plan_id == work_plan_id,
        ProductionRecord.recorded_date == recorded_date,
        exclude_id=exclude_id,
    )


def create_record(session: Session, ctx: RequestContext, payload: ProductionRecordCreate) -> Dict:
    plan = get_work_plan(session, ctx, payload.work_plan_id)
    _check_one_per_day(session, plan.id, payload.recorded_date)

    record = ProductionRecord(
        company_id=ctx.company_id,
        recorded_by=ctx.user_id,
        **payload.model_dump(),
    )
    with atomic(session):
        session.add(record)
        session.flush()
        check_reject_limit(session, record)
    session.refresh(record)
    logger.info(
        "Production record %s for plan=%s: completed=%s good=%s reject=%s",
        record.id, plan.id, record.completed_quantity, record.good_quantity, record.reject_quantity,
    )
    return record_details(session, [record])[0]


def update_record(session: Session, ctx: RequestContext, record_id: int, payload: ProductionRecordUpdate) -> Dict:
    record = get_record(session, ctx, record_id)
    values = payload.model_dump()
    if values["recorded_date"] is None:
        values.pop("recorded_date")
    else:
        _check_one_per_day(session, record.work_plan_id, values["recorded_date"], exclude_id=record.id)

    previous_reject = record.reject_quantity
    apply_fields(record, values)
    session.add(record)
    if record.reject_quantity != previous_reject:
        check_reject_limit(session, record)
    commit(session, record)
    logger.info("Production record %s updated", record.id)
    return record_details(session, [record])[0]


def delete_record(session: Session, ctx: RequestContext, record_id: int) -> None:
    record = get_record(session, ctx, record_id)
    ensure_no_dependents(session, [
        (PerformanceAppraisal, PerformanceAppraisal.production_record_id == record.id,
         "Cannot delete production record referenced by performance appraisals"),
    ])
    session.delete(record)
    commit(session)
    logger.info("Production record %s deleted", record_id)
