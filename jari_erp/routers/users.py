import logging
from typing import List

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session, select

from jari_erp.db import get_session, transaction
from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import User, UserAuditLog, UserRole
from jari_erp.schemas import UserAuditRead, UserCreate, UserRead, UserUpdate
from jari_erp.routers.auth import hash_password, require_permission, user_read

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["settings"])


def _audit(session: Session, actor: User, action: str, target: User) -> None:
    session.add(
        UserAuditLog(actor=actor.username, action=action, target_username=target.username, role=target.role.value)
    )


def _owner_count(session: Session) -> int:
    return len(session.exec(select(User.id).where(User.role == UserRole.OWNER)).all())


@router.get("/users", response_model=List[UserRead])
def list_users(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "settings")
    return [user_read(account) for account in session.exec(select(User).order_by(User.id)).all()]


@router.get("/user-logs", response_model=List[UserAuditRead])
def list_user_logs(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "settings")
    return session.exec(select(UserAuditLog).order_by(UserAuditLog.id.desc())).all()


@router.post("/users", response_model=UserRead)
def create_user(payload: UserCreate, request: Request, session: Session = Depends(get_session)):
    actor = require_permission(request, session, "settings")
    if not payload.username or not payload.password:
        raise InvalidInput("Username and password are required")
    with transaction(session):
        if session.exec(select(User.id).where(User.username == payload.username)).first() is not None:
            raise InvalidInput(f"Username {payload.username} is taken")
        account = User(username=payload.username, password_hash=hash_password(payload.password), role=payload.role)
        session.add(account)
        _audit(session, actor, "CREATE", account)
    session.refresh(account)
    logger.info("%s created user %s (%s)", actor.username, account.username, account.role.value)
    return user_read(account)


@router.put("/users/{user_id}", response_model=UserRead)
def update_user(user_id: int, payload: UserUpdate, request: Request, session: Session = Depends(get_session)):
    actor = require_permission(request, session, "settings")
    with transaction(session):
        account = session.get(User, user_id)
        if account is None:
            raise NotFound("User", user_id)
        if payload.password:
            account.password_hash = hash_password(payload.password)
            _audit(session, actor, "RESET_PASSWORD", account)
        if payload.role is not None and payload.role != account.role:
            if account.role == UserRole.OWNER and _owner_count(session) == 1:
                raise InvalidInput("The last owner cannot be demoted")
            account.role = payload.role
            _audit(session, actor, "UPDATE_ROLE", account)
        session.add(account)
    session.refresh(account)
    return user_read(account)


@router.delete("/users/{user_id}")
def delete_user(user_id: int, request: Request, session: Session = Depends(get_session)):
    actor = require_permission(request, session, "settings")
    with transaction(session):
        account = session.get(User, user_id)
        if account is None:
            raise NotFound("User", user_id)
        if account.id == actor.id:
            raise InvalidInput("You cannot delete your own account")
        username = account.username
        _audit(session, actor, "DELETE", account)
        session.delete(account)
    logger.info("%s deleted user %s", actor.username, username)
    return {"ok": True}
