# prodtrack/services/stages.py

import logging
from typing import Optional

from sqlmodel import Session, select

from ..auth import RequestContext
from ..models.master import ProductionStage
from ..models.planning import WorkPlan
from ..schemas import StageIn
from .crud import apply_fields, commit, ensure_no_dependents, ensure_unique, get_scoped, list_or_page

logger = logging.getLogger(__name__)


def list_stages(
    session: Session,
    ctx: RequestContext,
    is_active: Optional[bool] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    stmt = select(ProductionStage).where(ProductionStage.company_id == ctx.company_id)
    if is_active is not None:
        stmt = stmt.where(ProductionStage.is_active == is_active)
    stmt = stmt.order_by(ProductionStage.display_order.asc(), ProductionStage.id.asc())
    return list_or_page(session, stmt, page, limit)


def get_stage(session: Session, ctx: RequestContext, stage_id: int) -> ProductionStage:
    return get_scoped(session, ProductionStage, stage_id, ctx.company_id, "Production stage")


def create_stage(session: Session, ctx: RequestContext, payload: StageIn) -> ProductionStage:
    ensure_unique(
        session, ProductionStage, "Stage code already exists",
        ProductionStage.company_id == ctx.company_id,
        ProductionStage.code == payload.code,
    )
    stage = ProductionStage(company_id=ctx.company_id, **payload.model_dump())
    session.add(stage)
    commit(session, stage)
    logger.info("Stage %s (%s) created for company=%s", stage.id, stage.code, ctx.company_id)
    return stage


def update_stage(session: Session, ctx: RequestContext, stage_id: int, payload: StageIn) -> ProductionStage:
    stage = get_stage(session, ctx, stage_id)
    ensure_unique(
        session, ProductionStage, "Stage code already exists",
        ProductionStage.company_id == ctx.company_id,
        ProductionStage.code == payload.code,
        exclude_id=stage.id,
    )
    apply_fields(stage, payload.model_dump())
    session.add(stage)
    commit(session, stage)
    return stage


def delete_stage(session: Session, ctx: RequestContext, stage_id: int) -> None:
    stage = get_stage(session, ctx, stage_id)
    ensure_no_dependents(session, [
        (WorkPlan, WorkPlan.production_stage_id == stage.id,
         "Cannot delete stage with existing work plans"),
    ])
    session.delete(stage)
    commit(session)
    logger.info("Stage %s deleted", stage_id)
