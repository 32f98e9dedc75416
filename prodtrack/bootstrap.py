# prodtrack/bootstrap.py

import logging

from sqlmodel import Session, select

from .auth import hash_password
from .config import settings
from .database import engine
from .models.tenant import Company, CompanySettings, Role, User

logger = logging.getLogger(__name__)


def bootstrap_platform(session: Session) -> User:
    """
    Make sure the platform company and the superadmin account exist.
    Existing rows are left untouched, so this is safe to run on every start.
    """
    company = session.exec(
        select(Company).where(Company.code == settings.bootstrap_company_code)
    ).first()
    if company is None:
        company = Company(name="Platform Administration", code=settings.bootstrap_company_code)
        company.set_settings(CompanySettings())
        session.add(company)
        session.flush()
        logger.info("Created platform company %s", company.code)

    user = session.exec(select(User).where(User.username == settings.superadmin_username)).first()
    if user is None:
        user = User(
            company_id=company.id,
            username=settings.superadmin_username,
            full_name="Super Administrator",
            password_hash=hash_password(settings.superadmin_password),
            role=Role.SUPERADMIN.value,
        )
        session.add(user)
        logger.info("Created superadmin user %s", user.username)

    session.commit()
    session.refresh(user)
    return user


def run_bootstrap() -> None:
    with Session(engine) as session:
        bootstrap_platform(session)
