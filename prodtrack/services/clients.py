# prodtrack/services/clients.py

import logging
from typing import Optional

from sqlmodel import Session, select

from ..auth import RequestContext
from ..models.master import Client
from ..models.orders import ProductionOrder
from ..schemas import ClientIn
from .crud import apply_fields, commit, ensure_no_dependents, get_scoped, list_or_page

logger = logging.getLogger(__name__)


def list_clients(
    session: Session,
    ctx: RequestContext,
    is_active: Optional[bool] = None,
    page: Optional[int] = None,
    limit: int = 50,
):
    stmt = select(Client).where(Client.company_id == ctx.company_id)
    if is_active is not None:
        stmt = stmt.where(Client.is_active == is_active)
    stmt = stmt.order_by(Client.is_active.desc(), Client.name.asc(), Client.id.asc())
    return list_or_page(session, stmt, page, limit)


def get_client(session: Session, ctx: RequestContext, client_id: int) -> Client:
    return get_scoped(session, Client, client_id, ctx.company_id, "Client")


def create_client(session: Session, ctx: RequestContext, payload: ClientIn) -> Client:
    client = Client(company_id=ctx.company_id, **payload.model_dump())
    session.add(client)
    commit(session, client)
    logger.info("Client %s created for company=%s", client.id, ctx.company_id)
    return client


def update_client(session: Session, ctx: RequestContext, client_id: int, payload: ClientIn) -> Client:
    client = get_client(session, ctx, client_id)
    apply_fields(client, payload.model_dump())
    session.add(client)
    commit(session, client)
    logger.info("Client %s updated", client.id)
    return client


def delete_client(session: Session, ctx: RequestContext, client_id: int) -> None:
    client = get_client(session, ctx, client_id)
    ensure_no_dependents(session, [
        (ProductionOrder, ProductionOrder.client_id == client.id,
         "Cannot delete client with existing production orders"),
    ])
    session.delete(client)
    commit(session)
    logger.info("Client %s deleted", client_id)
