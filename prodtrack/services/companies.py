# prodtrack/services/companies.py

import logging
from typing import Dict, List

from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session, select

from ..auth import RequestContext, hash_password
from ..errors import NotFoundError, ValidationError
from ..models.master import Operator, Product, ProductionStage
from ..models.tenant import Company, CompanySettings, User
from ..schemas import CompanyCreate, CompanyUpdate, UserCreate
from .crud import apply_fields, atomic, commit, count_where, ensure_unique

logger = logging.getLogger(__name__)


DEFAULT_STAGES = [
    ("throwing", "Throwing", "#FF6B6B", "Initial shaping of ceramic pieces"),
    ("trimming", "Trimming", "#4ECDC4", "Refining and trimming excess clay"),
    ("decoration", "Decoration", "#45B7D1", "Applying decorative elements"),
    ("drying", "Drying", "#96CEB4", "Air drying before firing"),
    ("bisquit_loading", "Bisquit Loading", "#FFEAA7", "Loading into bisquit kiln"),
    ("bisquit_firing", "Bisquit Firing", "#DDA0DD", "First firing process"),
    ("bisquit_exit", "Bisquit Exit", "#98D8C8", "Unloading from bisquit kiln"),
    ("sanding_waxing", "Sanding/Waxing", "#F7DC6F", "Surface preparation"),
    ("glazing", "Glazing", "#BB8FCE", "Applying glaze coating"),
    ("high_fire", "High-Fire", "#85C1E9", "Final firing at high temperature"),
    ("quality_control", "Quality Control", "#F8C471", "Final inspection and testing"),
]


def seed_default_stages(session: Session, company_id: int) -> None:
    for order, (code, name, color, description) in enumerate(DEFAULT_STAGES, start=1):
        session.add(
            ProductionStage(
                company_id=company_id,
                code=code,
                name=name,
                background_color=color,
                description=description,
                display_order=order,
            )
        )


def _company_dict(session: Session, company: Company) -> Dict:
    return {
        **company.model_dump(exclude={"settings_json"}),
        "settings": company.get_settings().model_dump(by_alias=True),
        "counts": {
            "users": count_where(session, User, User.company_id == company.id),
            "operators": count_where(session, Operator, Operator.company_id == company.id),
            "products": count_where(session, Product, Product.company_id == company.id),
        },
    }


def list_companies(session: Session) -> List[Dict]:
    companies = session.exec(select(Company).order_by(Company.created_at.desc(), Company.id.desc())).all()
    return [_company_dict(session, c) for c in companies]


def get_company(session: Session, company_id: int) -> Company:
    company = session.get(Company, company_id)
    if not company:
        raise NotFoundError("Company not found")
    return company


def get_company_detail(session: Session, company_id: int) -> Dict:
    return _company_dict(session, get_company(session, company_id))


def create_company(session: Session, payload: CompanyCreate, with_stages: bool = True) -> Dict:
    code = payload.code.upper()
    ensure_unique(session, Company, "Company code already exists", Company.code == code)

    company = Company(
        name=payload.name,
        code=code,
        address=payload.address,
        phone=payload.phone,
        email=payload.email,
    )
    company.set_settings(CompanySettings())
    with atomic(session):
        session.add(company)
        session.flush()
        if with_stages:
            seed_default_stages(session, company.id)
    session.refresh(company)
    logger.info("Company %s (%s) created", company.id, company.code)
    return _company_dict(session, company)


def update_company(session: Session, company_id: int, payload: CompanyUpdate) -> Dict:
    company = get_company(session, company_id)
    apply_fields(company, payload.model_dump())
    session.add(company)
    commit(session, company)
    logger.info("Company %s updated (active=%s)", company.id, company.is_active)
    return _company_dict(session, company)


def read_settings(session: Session, ctx: RequestContext) -> CompanySettings:
    company = get_company(session, ctx.company_id)
    try:
        return company.get_settings()
    except (PydanticValidationError, ValueError) as e:
        logger.error("Stored settings for company %s are invalid: %s", company.id, e)
        raise ValidationError("Stored company settings are invalid")


def write_settings(session: Session, ctx: RequestContext, value: CompanySettings) -> CompanySettings:
    company = get_company(session, ctx.company_id)
    company.set_settings(value)
    session.add(company)
    commit(session, company)
    logger.info("Settings updated for company %s by user=%s", company.id, ctx.user_id)
    return company.get_settings()


def create_user(session: Session, company_id: int, payload: UserCreate) -> User:
    get_company(session, company_id)
    ensure_unique(session, User, "Username already exists", User.username == payload.username)
    user = User(
        company_id=company_id,
        username=payload.username,
        full_name=payload.full_name,
        email=payload.email,
        password_hash=hash_password(payload.password),
        role=payload.role.value,
    )
    session.add(user)
    commit(session, user)
    logger.info("User %s (%s) created for company %s", user.id, user.role, company_id)
    return user


def list_users(session: Session, company_id: int) -> List[User]:
    get_company(session, company_id)
    return session.exec(select(User).where(User.company_id == company_id).order_by(User.username)).all()
