import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from jari_erp import models  # noqa: F401  registers the tables
from jari_erp.db import get_session
from jari_erp.main import app
from jari_erp.models import Item, Machine, MachineType
from jari_erp.schemas import EmployeeCreate
from jari_erp.services import employees, inventory, machines


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, username="admin", password="admin"):
    response = client.post(
        "/login",
        data={"username": username, "password": password},
        follow_redirects=False,
    )
    assert response.status_code == 302
    return response


@pytest.fixture
def owner_client(client):
    login(client)
    return client


@pytest.fixture
def materials(session):
    """Silver short of its minimum and just 1 kg of copper."""
    silver = inventory.add_item(session, Item(material_key="silver", name="Silver", quantity=15, min_stock=20))
    copper = inventory.add_item(session, Item(material_key="copper", name="Copper", quantity=1, min_stock=10))
    return silver, copper


@pytest.fixture
def wire_drawer(session):
    return machines.add_machine(session, Machine(name="WD-01", machine_type=MachineType.WIRE_DRAWING))


@pytest.fixture
def operator_employee(session):
    return employees.add_employee(session, EmployeeCreate(employee_code="EMP001", name="Ramesh Patel"))
