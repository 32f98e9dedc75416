# prodtrack/services/crud.py
"""
Building blocks shared by every resource service: tenant-scoped lookup,
uniqueness and dependent-row guards, pagination and commit handling.
"""

import logging
import math
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from ..errors import ConflictError, NotFoundError, ReferentialConflictError
from ..utils.helpers import utcnow

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=SQLModel)


def get_scoped(session: Session, model: Type[M], obj_id: int, company_id: int, label: str) -> M:
    """
    Fetch ``model`` by id within a tenant. Rows of another tenant are
    reported exactly like missing rows.
    """
    obj = session.get(model, obj_id)
    if obj is None or getattr(obj, "company_id", None) != company_id:
        raise NotFoundError(f"{label} not found")
    return obj


def count_where(session: Session, model: Type[SQLModel], *criteria) -> int:
    stmt = select(func.count()).select_from(model)
    for c in criteria:
        stmt = stmt.where(c)
    return session.exec(stmt).one()


def ensure_unique(
    session: Session,
    model: Type[SQLModel],
    message: str,
    *criteria,
    exclude_id: Optional[int] = None,
) -> None:
    stmt = select(model)
    for c in criteria:
        stmt = stmt.where(c)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    if session.exec(stmt).first() is not None:
        logger.warning("Uniqueness conflict on %s: %s", model.__name__, message)
        raise ConflictError(message)


def ensure_no_dependents(
    session: Session,
    checks: Iterable[Tuple[Type[SQLModel], Any, str]],
) -> None:
    """
    ``checks`` is a list of ``(model, criterion, message)``; the first
    model with at least one matching row blocks the delete.
    """
    for model, criterion, message in checks:
        if count_where(session, model, criterion) > 0:
            logger.warning("Delete blocked: %s", message)
            raise ReferentialConflictError(message)


def apply_fields(obj: SQLModel, data: Dict[str, Any]) -> SQLModel:
    for key, value in data.items():
        setattr(obj, key, value)
    if hasattr(obj, "updated_at"):
        obj.updated_at = utcnow()
    return obj


@contextmanager
def atomic(session: Session):
    """
    One all-or-nothing unit of work. Any failure inside the block rolls back
    every staged row; a constraint violation surfaces as a conflict.
    """
    try:
        yield session
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning("Integrity error on commit: %s", e.orig)
        raise ConflictError("Resource conflicts with an existing record")
    except Exception:
        session.rollback()
        raise


def commit(session: Session, *objs: SQLModel) -> None:
    with atomic(session):
        pass
    for obj in objs:
        session.refresh(obj)


def paginate(session: Session, statement, page: int, limit: int, transform=None) -> Dict[str, Any]:
    total = session.exec(select(func.count()).select_from(statement.order_by(None).subquery())).one()
    rows = session.exec(statement.offset((page - 1) * limit).limit(limit)).all()
    return {
        "data": transform(rows) if transform else rows,
        "pagination": page_info(page, limit, total),
    }


def page_info(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def list_or_page(session: Session, statement, page: Optional[int], limit: int, transform=None):
    """Plain list unless a page was asked for."""
    if page is None:
        rows = session.exec(statement).all()
        return transform(rows) if transform else rows
    return paginate(session, statement, page, limit, transform)


def by_id(rows: Sequence[SQLModel]) -> Dict[int, SQLModel]:
    return {r.id: r for r in rows}
