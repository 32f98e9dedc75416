# prodtrack/api/companies.py

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..auth import RequestContext, get_request_context, public_user, require_admin, require_superadmin
from ..database import get_session
from ..models.tenant import CompanySettings
from ..schemas import CompanyCreate, CompanyUpdate, UserCreate
from ..services import companies as svc

router = APIRouter(prefix="/api/companies", tags=["companies"])


# ---------- caller's own tenant ----------
# declared before /{company_id} so "current" is not parsed as an id

@router.get("/current/settings")
def get_current_settings(
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
):
    return svc.read_settings(session, ctx).model_dump(by_alias=True)


@router.put("/current/settings")
def put_current_settings(
    payload: CompanySettings,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_admin),
):
    return svc.write_settings(session, ctx, payload).model_dump(by_alias=True)


# ---------- platform administration ----------

@router.get("")
def list_companies(
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_superadmin),
):
    return svc.list_companies(session)


@router.post("", status_code=201)
def create_company(
    payload: CompanyCreate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_superadmin),
):
    return svc.create_company(session, payload)


@router.get("/{company_id}")
def get_company(
    company_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_superadmin),
):
    return svc.get_company_detail(session, company_id)


@router.put("/{company_id}")
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_superadmin),
):
    return svc.update_company(session, company_id, payload)


@router.get("/{company_id}/users")
def list_users(
    company_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_superadmin),
):
    return [public_user(u) for u in svc.list_users(session, company_id)]


@router.post("/{company_id}/users", status_code=201)
def create_user(
    company_id: int,
    payload: UserCreate,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(require_superadmin),
):
    return public_user(svc.create_user(session, company_id, payload))
