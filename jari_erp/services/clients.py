import logging
from typing import List

from sqlalchemy import func
from sqlmodel import Session, select

from jari_erp.db import transaction
from jari_erp.errors import InvalidInput, NotFound
from jari_erp.models import Client, Invoice, InvoiceStatus, Order, OrderStatus
from jari_erp.schemas import ClientCreate, ClientUpdate, OrderCreate

logger = logging.getLogger(__name__)


def list_clients(session: Session) -> List[Client]:
    return session.exec(select(Client).order_by(Client.id)).all()


def get_client(session: Session, client_id: int) -> Client:
    client = session.get(Client, client_id)
    if not client:
        raise NotFound("Client", client_id)
    return client


def add_client(session: Session, data: ClientCreate) -> Client:
    if data.credit_limit < 0:
        raise InvalidInput("Credit limit cannot be negative")
    client = Client.model_validate(data)
    with transaction(session):
        session.add(client)
    session.refresh(client)
    logger.info("Added client %s (%s)", client.client_name, client.state)
    return client


def update_client(session: Session, client_id: int, data: ClientUpdate) -> Client:
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if changes.get("credit_limit") is not None and changes["credit_limit"] < 0:
        raise InvalidInput("Credit limit cannot be negative")
    with transaction(session):
        client = get_client(session, client_id)
        for key, value in changes.items():
            setattr(client, key, value)
        session.add(client)
    session.refresh(client)
    logger.info("Updated client %s: %s", client.id, ", ".join(sorted(changes)))
    return client


def summarize(session: Session, client_id: int) -> dict:
    client = get_client(session, client_id)

    total_orders, total_sales_value = session.exec(
        select(func.count(Order.id), func.coalesce(func.sum(Order.amount), 0)).where(
            Order.client_id == client_id
        )
    ).one()
    total_invoiced = session.exec(
        select(func.coalesce(func.sum(Invoice.grand_total), 0)).where(Invoice.client_id == client_id)
    ).one()
    total_paid = session.exec(
        select(func.coalesce(func.sum(Invoice.grand_total), 0)).where(
            Invoice.client_id == client_id, Invoice.status == InvoiceStatus.PAID
        )
    ).one()

    outstanding = int(total_invoiced) - int(total_paid)
    return {
        "client": client,
        "total_orders": int(total_orders),
        "total_sales_value": int(total_sales_value),
        "total_invoiced": int(total_invoiced),
        "total_paid": int(total_paid),
        "outstanding_balance": outstanding,
        "is_over_credit_limit": outstanding > client.credit_limit,
    }


def list_orders(session: Session, client_id=None, status=None) -> List[Order]:
    query = select(Order)
    if client_id is not None:
        query = query.where(Order.client_id == client_id)
    if status is not None:
        query = query.where(Order.status == status)
    return session.exec(query.order_by(Order.order_date.desc(), Order.id.desc())).all()


def get_order(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise NotFound("Order", order_id)
    return order


def add_order(session: Session, data: OrderCreate) -> Order:
    if data.quantity <= 0:
        raise InvalidInput("Quantity must be > 0")
    if data.amount < 0:
        raise InvalidInput("Amount cannot be negative")
    with transaction(session):
        client_name = data.client_name
        if data.client_id is not None:
            client_name = client_name or get_client(session, data.client_id).client_name
        if not client_name:
            raise InvalidInput("Client name is required")
        order = Order(
            client_id=data.client_id,
            client_name=client_name,
            product_key=data.product_key,
            quantity=data.quantity,
            amount=data.amount,
            status=data.status,
        )
        if data.order_date:
            order.order_date = data.order_date
        session.add(order)
    session.refresh(order)
    logger.info("Order %s for %s: %s x %s", order.id, order.client_name, order.quantity, order.product_key)
    return order


def update_order_status(session: Session, order_id: int, status: OrderStatus) -> Order:
    with transaction(session):
        order = get_order(session, order_id)
        order.status = status
        session.add(order)
    session.refresh(order)
    logger.info("Order %s: %s", order.id, status.value)
    return order
