# prodtrack/services/products.py

import logging
from typing import Optional

from sqlmodel import Session, select

from ..auth import RequestContext
from ..models.master import MonthlyTarget, Product
from ..models.orders import ProductionOrderItem
from ..models.planning import WorkPlan
from ..schemas import ProductIn
from .crud import apply_fields, commit, ensure_no_dependents, ensure_unique, get_scoped, list_or_page

logger = logging.getLogger(__name__)


def list_products(
    session: Session,
    ctx: RequestContext,
    is_active: Optional[bool] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    stmt = select(Product).where(Product.company_id == ctx.company_id)
    if is_active is not None:
        stmt = stmt.where(Product.is_active == is_active)
    stmt = stmt.order_by(Product.is_active.desc(), Product.code.asc())
    return list_or_page(session, stmt, page, limit)


def get_product(session: Session, ctx: RequestContext, product_id: int) -> Product:
    return get_scoped(session, Product, product_id, ctx.company_id, "Product")


def create_product(session: Session, ctx: RequestContext, payload: ProductIn) -> Product:
    ensure_unique(
        session, Product, "Product code already exists",
        Product.company_id == ctx.company_id,
        Product.code == payload.code,
    )
    product = Product(company_id=ctx.company_id, **payload.model_dump())
    session.add(product)
    commit(session, product)
    logger.info("Product %s (%s) created for company=%s", product.id, product.code, ctx.company_id)
    return product


def update_product(session: Session, ctx: RequestContext, product_id: int, payload: ProductIn) -> Product:
    product = get_product(session, ctx, product_id)
    ensure_unique(
        session, Product, "Product code already exists",
        Product.company_id == ctx.company_id,
        Product.code == payload.code,
        exclude_id=product.id,
    )
    apply_fields(product, payload.model_dump())
    session.add(product)
    commit(session, product)
    logger.info("Product %s updated", product.id)
    return product


def delete_product(session: Session, ctx: RequestContext, product_id: int) -> None:
    product = get_product(session, ctx, product_id)
    ensure_no_dependents(session, [
        (ProductionOrderItem, ProductionOrderItem.product_id == product.id,
         "Cannot delete product with existing order items"),
        (WorkPlan, WorkPlan.product_id == product.id,
         "Cannot delete product with existing work plans"),
        (MonthlyTarget, MonthlyTarget.product_id == product.id,
         "Cannot delete product with existing monthly targets"),
    ])
    session.delete(product)
    commit(session)
    logger.info("Product %s deleted", product_id)
