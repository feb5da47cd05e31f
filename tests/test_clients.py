import pytest

from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import InvoiceStatus, OrderStatus
from jari_erp.schemas import ClientCreate, ClientUpdate, InvoiceCreate, InvoiceLineCreate, OrderCreate
from jari_erp.services import billing, clients


@pytest.fixture
def client_record(session):
    return clients.add_client(
        session,
        ClientCreate(client_name="Surat Textiles", state="gujarat", credit_limit=10000),
    )


def _invoice_for(session, client_id):
    return billing.issue_invoice(
        session,
        InvoiceCreate(
            client_id=client_id,
            lines=[InvoiceLineCreate(product_key="real_jari", quantity=2, rate=15000)],
            status=InvoiceStatus.ISSUED,
        ),
    )


def test_summary_tracks_outstanding_and_credit_limit(session, client_record):
    clients.add_order(
        session, OrderCreate(client_id=client_record.id, product_key="real_jari", quantity=2, amount=30000)
    )
    invoice = _invoice_for(session, client_record.id)

    summary = clients.summarize(session, client_record.id)
    assert summary["total_orders"] == 1
    assert summary["total_sales_value"] == 30000
    assert summary["total_invoiced"] == 35400
    assert summary["total_paid"] == 0
    assert summary["outstanding_balance"] == 35400
    assert summary["is_over_credit_limit"] is True

    billing.update_invoice_status(session, invoice.id, InvoiceStatus.PAID)
    summary = clients.summarize(session, client_record.id)
    assert summary["total_paid"] == 35400
    assert summary["outstanding_balance"] == 0
    assert summary["is_over_credit_limit"] is False


def test_invoice_snapshots_client(session, client_record):
    invoice = _invoice_for(session, client_record.id)
    clients.update_client(session, client_record.id, ClientUpdate(client_name="Surat Textiles Pvt Ltd"))
    assert billing.get_invoice(session, invoice.id).client_name == "Surat Textiles"


def test_summary_unknown_client(session):
    with pytest.raises(NotFound):
        clients.summarize(session, 7)


def test_negative_credit_limit_rejected(session):
    with pytest.raises(InvalidInput):
        clients.add_client(session, ClientCreate(client_name="Bad", credit_limit=-1))


def test_order_requires_positive_quantity(session, client_record):
    with pytest.raises(InvalidInput):
        clients.add_order(
            session, OrderCreate(client_id=client_record.id, product_key="silver", quantity=0, amount=10)
        )


def test_order_status_and_filters(session, client_record):
    order = clients.add_order(
        session, OrderCreate(client_id=client_record.id, product_key="copper", quantity=10, amount=8000)
    )
    clients.update_order_status(session, order.id, OrderStatus.SHIPPED)

    assert clients.list_orders(session, status=OrderStatus.PENDING) == []
    shipped = clients.list_orders(session, client_id=client_record.id, status=OrderStatus.SHIPPED)
    assert [o.id for o in shipped] == [order.id]
    assert shipped[0].client_name == "Surat Textiles"


def test_update_ignores_null_fields(session, client_record):
    updated = clients.update_client(
        session, client_record.id, ClientUpdate(client_name=None, state=None, phone="98250 11111")
    )

    assert updated.client_name == "Surat Textiles"
    assert updated.state == "gujarat"
    assert updated.phone == "98250 11111"
