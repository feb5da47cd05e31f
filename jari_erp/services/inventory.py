import logging
from typing import List, Optional

from sqlmodel import Session, select

from jari_erp.db import transaction
from jari_erp.errors import InsufficientStock, InvalidInput, NotFound
from jari_erp.models import Item, StockMovement, StockStatus

logger = logging.getLogger(__name__)


def stock_status_for(quantity: float, min_stock: float) -> StockStatus:
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity < min_stock:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def _normalize(qty: float) -> float:
    # Quantities are tracked to the gram.
    return round(float(qty), 3)


def _apply_quantity(session: Session, item: Item, quantity: float, txn_type: str,
                    ref_type: Optional[str] = None, ref_id: Optional[int] = None) -> Item:
    quantity = _normalize(quantity)
    if quantity < 0:
        raise InvalidInput(f"Quantity for {item.material_key} cannot be negative")
    delta = _normalize(quantity - item.quantity)
    item.quantity = quantity
    item.stock_status = stock_status_for(item.quantity, item.min_stock)
    session.add(item)
    if delta:
        session.add(
            StockMovement(
                item_id=item.id,
                qty=abs(delta) if txn_type != "ADJUST" else delta,
                txn_type=txn_type,
                ref_type=ref_type,
                ref_id=ref_id,
            )
        )
    return item


def _locked_item(session: Session, item_id: int) -> Item:
    item = session.exec(select(Item).where(Item.id == item_id).with_for_update()).first()
    if not item:
        raise NotFound("Item", item_id)
    return item


def find_by_material(session: Session, material_key: str) -> Optional[Item]:
    return session.exec(
        select(Item).where(Item.material_key == material_key).with_for_update()
    ).first()


def list_items(session: Session) -> List[Item]:
    return session.exec(select(Item).order_by(Item.id)).all()


def get_item(session: Session, item_id: int) -> Item:
    item = session.get(Item, item_id)
    if not item:
        raise NotFound("Item", item_id)
    return item


def add_item(session: Session, item: Item) -> Item:
    if item.quantity < 0:
        raise InvalidInput("Quantity cannot be negative")
    with transaction(session):
        if find_by_material(session, item.material_key):
            raise InvalidInput(f"Material {item.material_key} already exists")
        item.quantity = _normalize(item.quantity)
        item.stock_status = stock_status_for(item.quantity, item.min_stock)
        session.add(item)
        session.flush()
        if item.quantity:
            session.add(StockMovement(item_id=item.id, qty=item.quantity, txn_type="IN", ref_type="OPENING"))
    session.refresh(item)
    logger.info("Added item %s with %s %s", item.material_key, item.quantity, item.unit)
    return item


def set_quantity(session: Session, item_id: int, quantity: float) -> Item:
    with transaction(session):
        item = _locked_item(session, item_id)
        _apply_quantity(session, item, quantity, "ADJUST", ref_type="MANUAL")
    session.refresh(item)
    logger.info("Set %s quantity to %s (%s)", item.material_key, item.quantity, item.stock_status.value)
    return item


def receive(session: Session, item_id: int, quantity: float) -> Item:
    """Manual stock entry: add ``quantity`` to what is on hand."""
    if quantity <= 0:
        raise InvalidInput("Received quantity must be > 0")
    with transaction(session):
        item = _locked_item(session, item_id)
        _apply_quantity(session, item, item.quantity + quantity, "IN", ref_type="STOCK_ENTRY")
    session.refresh(item)
    logger.info("Received %s %s of %s", quantity, item.unit, item.material_key)
    return item


def available(session: Session, material_key: str) -> float:
    item = find_by_material(session, material_key)
    return item.quantity if item else 0.0


def debit(session: Session, material_key: str, amount: float,
          ref_type: Optional[str] = None, ref_id: Optional[int] = None) -> Item:
    with transaction(session):
        item = find_by_material(session, material_key)
        on_hand = item.quantity if item else 0.0
        if not item or on_hand < amount:
            raise InsufficientStock(material_key, amount, on_hand)
        _apply_quantity(session, item, on_hand - amount, "OUT", ref_type=ref_type, ref_id=ref_id)
    return item


def low_stock_items(session: Session) -> List[Item]:
    return session.exec(
        select(Item).where(Item.stock_status.in_([StockStatus.LOW_STOCK, StockStatus.OUT_OF_STOCK]))
    ).all()
