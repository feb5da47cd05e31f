import logging

from fastapi import Depends, FastAPI, Request
from sqlmodel import Session

from jari_erp.config import settings
from jari_erp.db import engine, get_session, init_db
from jari_erp.routers import (
    backups,
    billing,
    clients,
    finance,
    inventory,
    machines,
    orders,
    payroll,
    reports,
    users,
    workforce,
)
from jari_erp.routers.auth import ensure_admin_seed, get_current_user, permissions_for
from jari_erp.routers.auth import router as auth_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

_scheduler = None


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    with Session(engine) as session:
        ensure_admin_seed(session)
    if settings.ENABLE_DAILY_BACKUP:
        from apscheduler.schedulers.background import BackgroundScheduler

        def _run_backup_job():
            from jari_erp.services.backups import run_backup

            with Session(engine) as session:
                try:
                    run_backup(session)
                except Exception:
                    logger.exception("Daily backup failed")

        global _scheduler
        if _scheduler is None:
            _scheduler = BackgroundScheduler(daemon=True)
            _scheduler.add_job(_run_backup_job, "interval", days=1)
            _scheduler.start()
            logger.info("Daily backup scheduled")


@app.on_event("shutdown")
def on_shutdown() -> None:
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)


@app.get("/")
def root(request: Request, session: Session = Depends(get_session)):
    user = get_current_user(request, session)
    return {
        "name": settings.PROJECT_NAME,
        "company": settings.COMPANY_NAME,
        "user": user.username if user else None,
        "permissions": permissions_for(user.role) if user else [],
    }


app.include_router(auth_router)
app.include_router(inventory.router)
app.include_router(machines.router)
app.include_router(clients.router)
app.include_router(orders.router)
app.include_router(billing.router)
app.include_router(finance.router)
app.include_router(workforce.router)
app.include_router(payroll.router)
app.include_router(reports.router)
app.include_router(backups.router)
app.include_router(users.router)
