from . import (
    backups,
    billing,
    clients,
    finance,
    inventory,
    machines,
    orders,
    payroll,
    reports,
    users,
    workforce,
)

__all__ = [
    "backups",
    "billing",
    "clients",
    "finance",
    "inventory",
    "machines",
    "orders",
    "payroll",
    "reports",
    "users",
    "workforce",
]
