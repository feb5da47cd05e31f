from typing import List

from sqlmodel import Session, select

from jari_erp.models import (
    AttendanceStatus,
    Employee,
    Item,
    Machine,
    MachineStatus,
    Order,
    OrderStatus,
    StockStatus,
)


def _alerts(items: List[Item], machines: List[Machine], pending_orders: int) -> List[dict]:
    alerts = []
    for item in items:
        if item.stock_status == StockStatus.IN_STOCK:
            continue
        alerts.append(
            {
                "id": f"lowstock-{item.id}",
                "alert_type": "low_stock",
                "subject": item.material_key,
                "severity": "error" if item.stock_status == StockStatus.OUT_OF_STOCK else "warning",
            }
        )
    for machine in machines:
        if machine.status == MachineStatus.MAINTENANCE:
            alerts.append(
                {
                    "id": f"maintenance-{machine.id}",
                    "alert_type": "maintenance",
                    "subject": machine.name,
                    "severity": "error",
                }
            )
    if pending_orders > 0:
        alerts.append(
            {
                "id": "pending-orders",
                "alert_type": "orders",
                "subject": f"{pending_orders} orders awaiting dispatch",
                "severity": "info",
            }
        )
    return alerts


def dashboard(session: Session) -> dict:
    items = session.exec(select(Item)).all()
    machines = session.exec(select(Machine)).all()
    employees = session.exec(select(Employee)).all()
    pending_orders = len(session.exec(select(Order).where(Order.status == OrderStatus.PENDING)).all())

    running = [machine for machine in machines if machine.status == MachineStatus.RUNNING]
    avg_efficiency = round(sum(machine.efficiency for machine in running) / len(running)) if running else 0

    return {
        "running_machines": len(running),
        "avg_efficiency": avg_efficiency,
        "inventory_value": sum(item.estimated_value for item in items),
        "active_workforce": sum(1 for employee in employees if employee.attendance != AttendanceStatus.ABSENT),
        "pending_orders": pending_orders,
        "low_stock_items": [item.material_key for item in items if item.stock_status != StockStatus.IN_STOCK],
        "alerts": _alerts(items, machines, pending_orders),
    }
