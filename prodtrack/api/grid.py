# prodtrack/api/grid.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..auth import RequestContext, get_request_context
from ..config import settings
from ..database import get_session
from ..grid.views import run_view

router = APIRouter(prefix="/api/grid", tags=["grid"])


@router.get("/{view}")
def grid_view(
    view: str,
    search: str = "",
    sort: Optional[str] = None,
    direction: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=200),
    filter: Optional[List[str]] = Query(None),
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    One page of an admin grid. ``filter`` is repeatable, each value
    ``<column>:<value>``; ``all`` as the value clears that column's filter.
    """
    return run_view(
        session, ctx, view,
        search=search,
        sort=sort,
        direction=direction,
        page=page,
        page_size=page_size,
        filters=filter or (),
    )
