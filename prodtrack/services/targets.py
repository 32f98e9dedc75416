# prodtrack/services/targets.py

import logging
from typing import Optional

from sqlmodel import Session, select

from ..auth import RequestContext
from ..models.master import MonthlyTarget
from ..schemas import MonthlyTargetIn
from .crud import apply_fields, commit, ensure_unique, get_scoped, list_or_page
from .products import get_product

logger = logging.getLogger(__name__)


def list_targets(
    session: Session,
    ctx: RequestContext,
    month: Optional[str] = None,
    product_id: Optional[int] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    stmt = select(MonthlyTarget).where(MonthlyTarget.company_id == ctx.company_id)
    if month:
        stmt = stmt.where(MonthlyTarget.month == month)
    if product_id:
        stmt = stmt.where(MonthlyTarget.product_id == product_id)
    stmt = stmt.order_by(MonthlyTarget.month.desc(), MonthlyTarget.product_id.asc())
    return list_or_page(session, stmt, page, limit)


def get_target(session: Session, ctx: RequestContext, target_id: int) -> MonthlyTarget:
    return get_scoped(session, MonthlyTarget, target_id, ctx.company_id, "Monthly target")


def _check_unique(session: Session, ctx: RequestContext, payload: MonthlyTargetIn, exclude_id=None) -> None:
    ensure_unique(
        session, MonthlyTarget, "A target for this product and month already exists",
        MonthlyTarget.company_id == ctx.company_id,
        MonthlyTarget.product_id == payload.product_id,
        MonthlyTarget.month == payload.month,
        exclude_id=exclude_id,
    )


def create_target(session: Session, ctx: RequestContext, payload: MonthlyTargetIn) -> MonthlyTarget:
    get_product(session, ctx, payload.product_id)
    _check_unique(session, ctx, payload)
    target = MonthlyTarget(company_id=ctx.company_id, **payload.model_dump())
    session.add(target)
    commit(session, target)
    logger.info("Monthly target %s created (%s, product=%s)", target.id, target.month, target.product_id)
    return target


def update_target(session: Session, ctx: RequestContext, target_id: int, payload: MonthlyTargetIn) -> MonthlyTarget:
    target = get_target(session, ctx, target_id)
    get_product(session, ctx, payload.product_id)
    _check_unique(session, ctx, payload, exclude_id=target.id)
    apply_fields(target, payload.model_dump())
    session.add(target)
    commit(session, target)
    return target


def delete_target(session: Session, ctx: RequestContext, target_id: int) -> None:
    target = get_target(session, ctx, target_id)
    session.delete(target)
    commit(session)
    logger.info("Monthly target %s deleted", target_id)
