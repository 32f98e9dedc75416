# prodtrack/api/auth.py

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from ..auth import SESSION_COOKIE, authenticate, get_current_user, issue_token, public_user
from ..config import settings
from ..database import get_session
from ..models.tenant import User
from ..schemas import LoginRequest

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
def login(payload: LoginRequest, response: Response, session: Session = Depends(get_session)):
    """
    Exchange credentials for a session token. The token is returned in the
    body (for ``Authorization: Bearer``) and set as an http-only cookie.
    """
    user = authenticate(session, payload.username, payload.password)
    token = issue_token(user)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
    )
    return {"token": token, "user": public_user(user)}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return public_user(user)
