# prodtrack/auth.py
"""
Session / role gate.

Login issues a signed token (itsdangerous) carrying the user id. Every request
resolves that token into an explicit ``RequestContext`` which routers pass
down into the services, so nothing below the router reads ambient state.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlmodel import Session, select
from werkzeug.security import check_password_hash, generate_password_hash

from .config import settings
from .database import get_session
from .errors import AuthenticationError, AuthorizationError
from .models.tenant import Company, Role, User
from .utils.helpers import utcnow

logger = logging.getLogger(__name__)

SESSION_COOKIE = "prodtrack_session"
ADMIN_ROLES = (Role.ADMIN.value, Role.SUPERADMIN.value)

_serializer = URLSafeTimedSerializer(settings.secret_key, salt="session")


@dataclass(frozen=True)
class RequestContext:
    user_id: int
    role: str
    company_id: int

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return check_password_hash(hashed, password)


def public_user(user: User) -> dict:
    return user.model_dump(exclude={"password_hash"})


def issue_token(user: User) -> str:
    return _serializer.dumps({"uid": user.id})


def authenticate(session: Session, username: str, password: str) -> User:
    user = session.exec(select(User).where(User.username == username)).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        logger.warning("Failed login for username=%s", username)
        raise AuthenticationError("Invalid username or password")

    company = session.get(Company, user.company_id)
    if not company or not company.is_active:
        logger.warning("Login refused for user=%s: company disabled", user.id)
        raise AuthenticationError("Invalid username or password")

    user.last_login = utcnow()
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("User %s logged in (company=%s role=%s)", user.id, user.company_id, user.role)
    return user


def _read_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE)


def load_user_from_token(session: Session, token: str) -> User:
    try:
        data = _serializer.loads(token, max_age=settings.session_max_age)
    except SignatureExpired:
        raise AuthenticationError("Session expired")
    except BadSignature:
        raise AuthenticationError()

    uid = data.get("uid") if isinstance(data, dict) else None
    user = session.get(User, uid) if uid is not None else None
    if not user or not user.is_active:
        raise AuthenticationError()
    company = session.get(Company, user.company_id)
    if not company or not company.is_active:
        raise AuthenticationError()
    return user


def get_current_user(request: Request, session: Session = Depends(get_session)) -> User:
    token = _read_token(request)
    if not token:
        raise AuthenticationError()
    return load_user_from_token(session, token)


def get_request_context(user: User = Depends(get_current_user)) -> RequestContext:
    return RequestContext(user_id=user.id, role=user.role, company_id=user.company_id)


def require_roles(*roles: str):
    allowed = set(roles)

    def _dependency(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        if ctx.role not in allowed:
            logger.warning("User %s with role %s denied (needs %s)", ctx.user_id, ctx.role, sorted(allowed))
            raise AuthorizationError()
        return ctx

    return _dependency


require_admin = require_roles(*ADMIN_ROLES)
require_superadmin = require_roles(Role.SUPERADMIN.value)
