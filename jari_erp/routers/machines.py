from typing import List

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from jari_erp.config import settings
from jari_erp.db import get_session
from jari_erp.models import Machine
from jari_erp.schemas import MachineCreate, MachineStatusUpdate
from jari_erp.routers.auth import require_permission
from jari_erp.services import machines

router = APIRouter(prefix="/api/machines", tags=["production"])


@router.get("", response_model=List[Machine])
def list_machines(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "production")
    return machines.list_machines(session)


@router.post("", response_model=Machine)
def create_machine(payload: MachineCreate, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "production_control")
    return machines.add_machine(session, Machine.model_validate(payload))


@router.get("/consumption")
def consumption_table(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "production")
    return settings.MACHINE_CONSUMPTION


@router.get("/{machine_id}", response_model=Machine)
def get_machine(machine_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "production")
    return machines.get_machine(session, machine_id)


@router.put("/{machine_id}/status", response_model=Machine)
def change_status(
    machine_id: int,
    payload: MachineStatusUpdate,
    request: Request,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "production_control")
    return machines.transition(session, machine_id, payload.status)
