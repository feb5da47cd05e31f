import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from jari_erp.db import get_session
from jari_erp.routers.auth import require_permission
from jari_erp.services.backups import run_backup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/backups", tags=["settings"])


@router.post("/run")
def run_backup_now(request: Request, session: Session = Depends(get_session)):
    actor = require_permission(request, session, "settings")
    try:
        snapshot = run_backup(session)
    except RuntimeError as exc:
        logger.error("Backup requested by %s failed: %s", actor.username, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return {**snapshot, "requested_by": actor.username}
