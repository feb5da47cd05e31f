import pytest
from sqlmodel import select

from jari_erp.errors import InsufficientStock, InvalidInput, NotFound
from jari_erp.models import Item, StockMovement, StockStatus
from jari_erp.services import inventory


@pytest.mark.parametrize(
    "quantity, min_stock, expected",
    [
        (0, 5, StockStatus.OUT_OF_STOCK),
        (15, 20, StockStatus.LOW_STOCK),
        (20, 20, StockStatus.IN_STOCK),
        (50, 20, StockStatus.IN_STOCK),
    ],
)
def test_stock_status_for(quantity, min_stock, expected):
    assert inventory.stock_status_for(quantity, min_stock) == expected


def test_add_item_sets_status_and_opening_movement(session, materials):
    silver, copper = materials
    assert silver.stock_status == StockStatus.LOW_STOCK
    assert copper.stock_status == StockStatus.LOW_STOCK

    movements = session.exec(select(StockMovement).where(StockMovement.item_id == silver.id)).all()
    assert len(movements) == 1
    assert movements[0].txn_type == "IN"
    assert movements[0].qty == 15


def test_duplicate_material_rejected(session, materials):
    with pytest.raises(InvalidInput):
        inventory.add_item(session, Item(material_key="silver", name="Silver again", quantity=1))


def test_set_quantity_rejects_negative(session, materials):
    silver, _ = materials
    with pytest.raises(InvalidInput):
        inventory.set_quantity(session, silver.id, -1)
    assert session.get(Item, silver.id).quantity == 15


def test_set_quantity_recomputes_status(session, materials):
    silver, _ = materials
    item = inventory.set_quantity(session, silver.id, 0)
    assert item.stock_status == StockStatus.OUT_OF_STOCK
    item = inventory.set_quantity(session, silver.id, 25)
    assert item.stock_status == StockStatus.IN_STOCK


def test_receive_adds_to_stock(session, materials):
    _, copper = materials
    item = inventory.receive(session, copper.id, 12)
    assert item.quantity == 13
    assert item.stock_status == StockStatus.IN_STOCK


def test_receive_requires_positive_quantity(session, materials):
    _, copper = materials
    with pytest.raises(InvalidInput):
        inventory.receive(session, copper.id, 0)


def test_unknown_item(session):
    with pytest.raises(NotFound):
        inventory.set_quantity(session, 999, 5)


def test_debit_never_goes_negative(session, materials):
    with pytest.raises(InsufficientStock) as exc:
        inventory.debit(session, "copper", 3)
    assert exc.value.material == "copper"
    assert exc.value.required == 3
    assert exc.value.available == 1
    assert inventory.available(session, "copper") == 1


def test_debit_missing_material(session):
    with pytest.raises(InsufficientStock) as exc:
        inventory.debit(session, "gold", 1)
    assert exc.value.available == 0


def test_low_stock_items(session, materials):
    inventory.add_item(session, Item(material_key="polyester_yarn", name="Yarn", quantity=100, min_stock=10))
    keys = {item.material_key for item in inventory.low_stock_items(session)}
    assert keys == {"silver", "copper"}
