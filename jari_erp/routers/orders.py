from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from jari_erp.db import get_session
from jari_erp.models import Order, OrderStatus
from jari_erp.schemas import OrderCreate, OrderStatusUpdate
from jari_erp.routers.auth import require_permission
from jari_erp.services import clients

router = APIRouter(prefix="/api/orders", tags=["sales"])


@router.get("", response_model=List[Order])
def list_orders(
    request: Request,
    client_id: Optional[int] = None,
    status: Optional[OrderStatus] = None,
    session: Session = Depends(get_session),
):
    require_permission(request, session, "orders")
    return clients.list_orders(session, client_id=client_id, status=status)


@router.post("", response_model=Order)
def create_order(payload: OrderCreate, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "orders")
    return clients.add_order(session, payload)


@router.get("/{order_id}", response_model=Order)
def get_order(order_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "orders")
    return clients.get_order(session, order_id)


@router.put("/{order_id}/status", response_model=Order)
def update_status(
    order_id: int, payload: OrderStatusUpdate, request: Request, session: Session = Depends(get_session)
):
    require_permission(request, session, "orders")
    return clients.update_order_status(session, order_id, payload.status)
