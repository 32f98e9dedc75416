# prodtrack/services/work_plans.py

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, select

from ..auth import RequestContext
from ..errors import ValidationError
from ..models.master import Operator, Product, ProductionStage
from ..models.orders import ProductionOrder, ProductionOrderItem
from ..models.planning import ProductionRecord, WorkPlan
from ..models.tenant import Company, Weekday
from ..schemas import WorkPlanIn
from ..utils.helpers import week_start_for
from .crud import apply_fields, by_id, commit, ensure_no_dependents, ensure_unique, get_scoped, list_or_page
from .operators import get_operator
from .orders import get_order
from .products import get_product
from .stages import get_stage

logger = logging.getLogger(__name__)


def is_overtime_day(session: Session, company_id: int, day: date) -> bool:
    company = session.get(Company, company_id)
    overtime = company.get_settings().overtime_days
    return Weekday.for_date(day) in overtime


def plan_details(session: Session, plans: Sequence[WorkPlan]) -> List[Dict]:
    """Work plans with operator / product / stage / order summaries."""
    if not plans:
        return []
    operators = by_id(session.exec(
        select(Operator).where(Operator.id.in_({p.operator_id for p in plans}))
    ).all())
    products = by_id(session.exec(
        select(Product).where(Product.id.in_({p.product_id for p in plans}))
    ).all())
    stages = by_id(session.exec(
        select(ProductionStage).where(ProductionStage.id.in_({p.production_stage_id for p in plans}))
    ).all())
    order_ids = {p.production_order_id for p in plans if p.production_order_id}
    orders = by_id(session.exec(
        select(ProductionOrder).where(ProductionOrder.id.in_(order_ids))
    ).all()) if order_ids else {}

    out = []
    for p in plans:
        op = operators.get(p.operator_id)
        prod = products.get(p.product_id)
        st = stages.get(p.production_stage_id)
        order = orders.get(p.production_order_id)
        out.append({
            **p.model_dump(),
            "operator": {"id": op.id, "employee_id": op.employee_id, "full_name": op.full_name} if op else None,
            "product": {"id": prod.id, "code": prod.code, "name": prod.name} if prod else None,
            "stage": {
                "id": st.id, "code": st.code, "name": st.name,
                "background_color": st.background_color,
            } if st else None,
            "production_order": {"id": order.id, "po_no": order.po_no} if order else None,
        })
    return out


def list_work_plans(
    session: Session,
    ctx: RequestContext,
    week_start: Optional[date] = None,
    operator_id: Optional[int] = None,
    planned_date: Optional[date] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    stmt = (
        select(WorkPlan)
        .join(ProductionStage, ProductionStage.id == WorkPlan.production_stage_id)
        .where(WorkPlan.company_id == ctx.company_id)
    )
    if week_start:
        stmt = stmt.where(WorkPlan.week_start == week_start)
    if operator_id:
        stmt = stmt.where(WorkPlan.operator_id == operator_id)
    if planned_date:
        stmt = stmt.where(WorkPlan.planned_date == planned_date)
    stmt = stmt.order_by(WorkPlan.planned_date.asc(), ProductionStage.display_order.asc(), WorkPlan.id.asc())
    return list_or_page(session, stmt, page, limit, transform=lambda rows: plan_details(session, rows))


def get_work_plan(session: Session, ctx: RequestContext, plan_id: int) -> WorkPlan:
    return get_scoped(session, WorkPlan, plan_id, ctx.company_id, "Work plan")


def get_work_plan_detail(session: Session, ctx: RequestContext, plan_id: int) -> Dict:
    return plan_details(session, [get_work_plan(session, ctx, plan_id)])[0]


def _resolve(session: Session, ctx: RequestContext, payload: WorkPlanIn, exclude_id: Optional[int] = None) -> Dict:
    """Check references and fill defaults; returns the column values to store."""
    get_operator(session, ctx, payload.operator_id)
    get_product(session, ctx, payload.product_id)
    get_stage(session, ctx, payload.production_stage_id)

    if payload.production_order_id is not None:
        order = get_order(session, ctx, payload.production_order_id)
        if payload.production_order_item_id is not None:
            item = session.get(ProductionOrderItem, payload.production_order_item_id)
            if item is None or item.production_order_id != order.id:
                raise ValidationError.for_field(
                    "production_order_item_id", "Order item does not belong to the production order"
                )
            if item.product_id != payload.product_id:
                raise ValidationError.for_field(
                    "production_order_item_id", "Order item is for a different product"
                )

    ensure_unique(
        session, WorkPlan, "Operator already has a plan for this stage on this date",
        WorkPlan.company_id == ctx.company_id,
        WorkPlan.operator_id == payload.operator_id,
        WorkPlan.planned_date == payload.planned_date,
        WorkPlan.production_stage_id == payload.production_stage_id,
        exclude_id=exclude_id,
    )

    values = payload.model_dump()
    if payload.week_start is None:
        values["week_start"] = week_start_for(payload.planned_date)
    if payload.is_overtime is None:
        values["is_overtime"] = is_overtime_day(session, ctx.company_id, payload.planned_date)
    return values


def create_work_plan(session: Session, ctx: RequestContext, payload: WorkPlanIn) -> Dict:
    values = _resolve(session, ctx, payload)
    plan = WorkPlan(company_id=ctx.company_id, **values)
    session.add(plan)
    commit(session, plan)
    logger.info(
        "Work plan %s created: operator=%s stage=%s date=%s",
        plan.id, plan.operator_id, plan.production_stage_id, plan.planned_date,
    )
    return plan_details(session, [plan])[0]


def update_work_plan(session: Session, ctx: RequestContext, plan_id: int, payload: WorkPlanIn) -> Dict:
    plan = get_work_plan(session, ctx, plan_id)
    values = _resolve(session, ctx, payload, exclude_id=plan.id)
    apply_fields(plan, values)
    session.add(plan)
    commit(session, plan)
    logger.info("Work plan %s updated", plan.id)
    return plan_details(session, [plan])[0]


def delete_work_plan(session: Session, ctx: RequestContext, plan_id: int) -> None:
    plan = get_work_plan(session, ctx, plan_id)
    ensure_no_dependents(session, [
        (ProductionRecord, ProductionRecord.work_plan_id == plan.id,
         "Cannot delete work plan with existing production records"),
    ])
    session.delete(plan)
    commit(session)
    logger.info("Work plan %s deleted", plan_id)
