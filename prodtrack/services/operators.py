# prodtrack/services/operators.py

import logging
from typing import Optional

from sqlmodel import Session, select

from ..auth import RequestContext
from ..errors import ValidationError
from ..models.master import Operator, ProductionStage
from ..models.planning import WorkPlan
from ..models.quality import PerformanceAppraisal
from ..schemas import OperatorIn
from .crud import apply_fields, commit, ensure_no_dependents, ensure_unique, get_scoped, list_or_page

logger = logging.getLogger(__name__)


def _check_skills(session: Session, company_id: int, skills) -> None:
    """Skills are stage codes of the operator's own company."""
    if not skills:
        return
    known = set(session.exec(
        select(ProductionStage.code).where(ProductionStage.company_id == company_id)
    ).all())
    unknown = [s for s in skills if s not in known]
    if unknown:
        raise ValidationError.for_field("skills", f"Unknown stage codes: {', '.join(unknown)}")


def list_operators(
    session: Session,
    ctx: RequestContext,
    is_active: Optional[bool] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    stmt = select(Operator).where(Operator.company_id == ctx.company_id)
    if is_active is not None:
        stmt = stmt.where(Operator.is_active == is_active)
    stmt = stmt.order_by(Operator.is_active.desc(), Operator.full_name.asc(), Operator.id.asc())
    return list_or_page(session, stmt, page, limit)


def get_operator(session: Session, ctx: RequestContext, operator_id: int) -> Operator:
    return get_scoped(session, Operator, operator_id, ctx.company_id, "Operator")


def create_operator(session: Session, ctx: RequestContext, payload: OperatorIn) -> Operator:
    ensure_unique(
        session, Operator, "Employee ID already exists",
        Operator.company_id == ctx.company_id,
        Operator.employee_id == payload.employee_id,
    )
    _check_skills(session, ctx.company_id, payload.skills)
    operator = Operator(company_id=ctx.company_id, **payload.model_dump())
    session.add(operator)
    commit(session, operator)
    logger.info("Operator %s (%s) created for company=%s", operator.id, operator.employee_id, ctx.company_id)
    return operator


def update_operator(session: Session, ctx: RequestContext, operator_id: int, payload: OperatorIn) -> Operator:
    operator = get_operator(session, ctx, operator_id)
    ensure_unique(
        session, Operator, "Employee ID already exists",
        Operator.company_id == ctx.company_id,
        Operator.employee_id == payload.employee_id,
        exclude_id=operator.id,
    )
    _check_skills(session, ctx.company_id, payload.skills)
    apply_fields(operator, payload.model_dump())
    session.add(operator)
    commit(session, operator)
    logger.info("Operator %s updated", operator.id)
    return operator


def delete_operator(session: Session, ctx: RequestContext, operator_id: int) -> None:
    operator = get_operator(session, ctx, operator_id)
    ensure_no_dependents(session, [
        (WorkPlan, WorkPlan.operator_id == operator.id,
         "Cannot delete operator with existing work plans"),
        (PerformanceAppraisal, PerformanceAppraisal.operator_id == operator.id,
         "Cannot delete operator with existing performance appraisals"),
    ])
    session.delete(operator)
    commit(session)
    logger.info("Operator %s deleted", operator_id)
