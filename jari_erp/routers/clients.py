from typing import List

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from jari_erp.db import get_session
from jari_erp.models import Client
from jari_erp.schemas import ClientCreate, ClientUpdate
from jari_erp.routers.auth import require_permission
from jari_erp.services import clients

router = APIRouter(prefix="/api/clients", tags=["sales"])


@router.get("", response_model=List[Client])
def list_clients(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "orders")
    return clients.list_clients(session)


@router.post("", response_model=Client)
def create_client(payload: ClientCreate, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "orders")
    return clients.add_client(session, payload)


@router.get("/{client_id}", response_model=Client)
def get_client(client_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "orders")
    return clients.get_client(session, client_id)


@router.put("/{client_id}", response_model=Client)
def update_client(
    client_id: int, payload: ClientUpdate, request: Request, session: Session = Depends(get_session)
):
    require_permission(request, session, "orders")
    return clients.update_client(session, client_id, payload)


@router.get("/{client_id}/summary")
def client_summary(client_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "orders")
    return clients.summarize(session, client_id)
