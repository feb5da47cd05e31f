from jari_erp.models import AttendanceStatus, MachineStatus
from jari_erp.schemas import OrderCreate
from jari_erp.services import clients, employees, inventory, machines
from jari_erp.services.dashboard import dashboard


def test_dashboard_projections(session, materials, wire_drawer, operator_employee):
    _, copper = materials
    inventory.receive(session, copper.id, 19)
    machines.transition(session, wire_drawer.id, MachineStatus.RUNNING)
    clients.add_order(session, OrderCreate(client_name="Walk-in", product_key="copper", quantity=1, amount=800))

    data = dashboard(session)

    assert data["running_machines"] == 1
    assert data["avg_efficiency"] == 75
    assert data["active_workforce"] == 1
    assert data["pending_orders"] == 1
    assert data["low_stock_items"] == ["silver"]
    alert_types = sorted(alert["alert_type"] for alert in data["alerts"])
    assert alert_types == ["low_stock", "orders"]


def test_maintenance_and_absence(session, wire_drawer, operator_employee):
    machines.transition(session, wire_drawer.id, MachineStatus.MAINTENANCE)
    employees.set_attendance_flag(session, operator_employee.id, AttendanceStatus.ABSENT)

    data = dashboard(session)

    assert data["running_machines"] == 0
    assert data["avg_efficiency"] == 0
    assert data["active_workforce"] == 0
    assert [alert["id"] for alert in data["alerts"]] == [f"maintenance-{wire_drawer.id}"]
