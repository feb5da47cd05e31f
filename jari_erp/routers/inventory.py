from typing import List

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session, select

from jari_erp.db import get_session
from jari_erp.models import Item, StockMovement
from jari_erp.schemas import ItemCreate, ItemQuantityUpdate, StockReceipt
from jari_erp.routers.auth import require_permission
from jari_erp.services import inventory

router = APIRouter(prefix="/api/items", tags=["inventory"])


@router.get("", response_model=List[Item])
def list_items(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "inventory")
    return inventory.list_items(session)


@router.get("/low-stock", response_model=List[Item])
def low_stock(request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "inventory")
    return inventory.low_stock_items(session)


@router.post("", response_model=Item)
def create_item(payload: ItemCreate, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "inventory_add_stock")
    return inventory.add_item(session, Item.model_validate(payload))


@router.get("/{item_id}", response_model=Item)
def get_item(item_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "inventory")
    return inventory.get_item(session, item_id)


@router.put("/{item_id}/quantity", response_model=Item)
def set_quantity(
    item_id: int, payload: ItemQuantityUpdate, request: Request, session: Session = Depends(get_session)
):
    require_permission(request, session, "inventory_add_stock")
    return inventory.set_quantity(session, item_id, payload.quantity)


@router.post("/{item_id}/receive", response_model=Item)
def receive_stock(
    item_id: int, payload: StockReceipt, request: Request, session: Session = Depends(get_session)
):
    require_permission(request, session, "inventory_add_stock")
    return inventory.receive(session, item_id, payload.quantity)


@router.get("/{item_id}/movements", response_model=List[StockMovement])
def list_movements(item_id: int, request: Request, session: Session = Depends(get_session)):
    require_permission(request, session, "inventory")
    inventory.get_item(session, item_id)
    return session.exec(
        select(StockMovement).where(StockMovement.item_id == item_id).order_by(StockMovement.id)
    ).all()
