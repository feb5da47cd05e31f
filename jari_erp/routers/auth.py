import hashlib
import hmac
import logging
import os
import time
from typing import Dict, FrozenSet, List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from sqlmodel import Session, select

from jari_erp.config import settings
from jari_erp.db import get_session
from jari_erp.models import User, UserRole
from jari_erp.schemas import UserRead

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

SESSION_COOKIE = "erp_session"
HASH_ITERATIONS = 120_000

# Shop-floor screens every role can open.
_FLOOR = frozenset({"inventory", "production", "production_control", "workforce", "workforce_attendance"})
_OFFICE = frozenset({"dashboard", "inventory_add_stock", "orders", "finance", "billing", "payroll"})

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.OWNER: _FLOOR
    | _OFFICE
    | {"workforce_add_employee", "finance_manual_entry", "billing_edit", "payroll_edit", "settings"},
    UserRole.MANAGER: _FLOOR | _OFFICE,
    UserRole.SUPERVISOR: _FLOOR | {"dashboard"},
    UserRole.OPERATOR: _FLOOR,
}


def permissions_for(role: UserRole) -> List[str]:
    return sorted(ROLE_PERMISSIONS.get(role, frozenset()))


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """``salt$hexdigest`` using PBKDF2-SHA256."""
    salt = salt or os.urandom(16).hex()
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), HASH_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    salt, _, _ = stored.partition("$")
    return hmac.compare_digest(hash_password(password, salt), stored)


def _signature(message: str) -> str:
    key = settings.ERP_SECRET.encode("utf-8")
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_session_token(user_id: int, issued_at: Optional[int] = None) -> str:
    message = f"{user_id}.{issued_at or int(time.time())}"
    return f"{message}.{_signature(message)}"


def read_session_token(token: str) -> Optional[int]:
    """User id carried by ``token``, or None if it is forged, malformed or expired."""
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        return None
    user_part, issued_part, signature = parts
    if not hmac.compare_digest(_signature(f"{user_part}.{issued_part}"), signature):
        return None
    if not (user_part.isdigit() and issued_part.isdigit()):
        return None
    if time.time() - int(issued_part) > settings.SESSION_MAX_AGE:
        return None
    return int(user_part)


def get_current_user(request: Request, session: Session) -> Optional[User]:
    token = request.cookies.get(SESSION_COOKIE)
    user_id = read_session_token(token) if token else None
    return session.get(User, user_id) if user_id else None


def require_permission(request: Request, session: Session, key: str) -> User:
    user = get_current_user(request, session)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if key not in ROLE_PERMISSIONS.get(user.role, frozenset()):
        logger.warning("%s (%s) denied %s", user.username, user.role.value, key)
        raise HTTPException(status_code=403, detail=f"Role {user.role.value} lacks {key}")
    return user


def ensure_admin_seed(session: Session) -> None:
    """First start: create owner ``admin``/``admin`` so someone can sign in."""
    if session.exec(select(User.id)).first() is not None:
        return
    session.add(User(username="admin", password_hash=hash_password("admin"), role=UserRole.OWNER))
    session.commit()
    logger.warning("Seeded default owner account 'admin'; change its password")


def user_read(user: User) -> UserRead:
    return UserRead(id=user.id, username=user.username, role=user.role, permissions=permissions_for(user.role))


@router.post("/login")
def login(
    username: str = Form(...),
    password: str = Form(...),
    session: Session = Depends(get_session),
):
    ensure_admin_seed(session)
    account = session.exec(select(User).where(User.username == username)).first()
    if account is None or not verify_password(password, account.password_hash):
        logger.warning("Failed login for %s", username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    redirect = RedirectResponse(url="/", status_code=302)
    redirect.set_cookie(
        SESSION_COOKIE,
        issue_session_token(account.id),
        max_age=settings.SESSION_MAX_AGE,
        httponly=True,
        samesite="lax",
    )
    logger.info("%s signed in", account.username)
    return redirect


@router.post("/logout")
def logout():
    redirect = RedirectResponse(url="/", status_code=302)
    redirect.delete_cookie(SESSION_COOKIE)
    return redirect


@router.get("/api/me", response_model=UserRead)
def current_profile(request: Request, session: Session = Depends(get_session)):
    account = get_current_user(request, session)
    if account is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_read(account)
