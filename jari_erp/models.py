from datetime import date, datetime
from enum import Enum
from typing import Optional, List

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship


class InventoryCategory(str, Enum):
    RAW_MATERIAL = "RAW_MATERIAL"
    FINISHED_GOODS = "FINISHED_GOODS"


class StockStatus(str, Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"


class MachineType(str, Enum):
    WIRE_DRAWING = "WIRE_DRAWING"
    FLATTENING = "FLATTENING"
    WINDING = "WINDING"
    ELECTROPLATING = "ELECTROPLATING"


class MachineStatus(str, Enum):
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    MAINTENANCE = "MAINTENANCE"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    ISSUED = "ISSUED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class GSTType(str, Enum):
    CGST_SGST = "CGST_SGST"
    IGST = "IGST"


class ChallanStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FILED = "FILED"


class PaymentMode(str, Enum):
    CASH = "CASH"
    NET_BANKING = "NET_BANKING"
    UPI = "UPI"


class TransactionType(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class PaymentStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"


class TransactionSource(str, Enum):
    MANUAL = "MANUAL"
    INVOICE = "INVOICE"
    GST_CHALLAN = "GST_CHALLAN"


class TransactionCategory(str, Enum):
    SALES = "SALES"
    PURCHASE = "PURCHASE"
    SALARY = "SALARY"
    GST = "GST"
    MAINTENANCE = "MAINTENANCE"
    OTHER = "OTHER"


class EmployeeRole(str, Enum):
    SUPERVISOR = "SUPERVISOR"
    OPERATOR = "OPERATOR"
    TECHNICIAN = "TECHNICIAN"
    HELPER = "HELPER"


class Department(str, Enum):
    PRODUCTION = "PRODUCTION"
    PACKAGING = "PACKAGING"
    MAINTENANCE = "MAINTENANCE"


class Shift(str, Enum):
    MORNING = "MORNING"
    EVENING = "EVENING"
    NIGHT = "NIGHT"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    HALF_DAY = "HALF_DAY"
    ABSENT = "ABSENT"
    LATE = "LATE"
    ON_LEAVE = "ON_LEAVE"


class PayrollStatus(str, Enum):
    DRAFT = "DRAFT"
    PROCESSED = "PROCESSED"
    PAID = "PAID"


class UserRole(str, Enum):
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    SUPERVISOR = "SUPERVISOR"
    OPERATOR = "OPERATOR"


class Item(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    material_key: str = Field(index=True, unique=True)
    name: str
    category: InventoryCategory = InventoryCategory.RAW_MATERIAL
    unit: str = "kg"
    quantity: float = 0.0
    min_stock: float = 0.0
    estimated_value: float = 0.0
    stock_status: StockStatus = StockStatus.OUT_OF_STOCK

    movements: List["StockMovement"] = Relationship(back_populates="item")


class StockMovement(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    item_id: int = Field(foreign_key="item.id")
    qty: float
    txn_type: str  # IN / OUT / ADJUST
    ref_type: Optional[str] = None
    ref_id: Optional[int] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    item: Optional["Item"] = Relationship(back_populates="movements")


class Machine(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    machine_type: MachineType
    status: MachineStatus = MachineStatus.STOPPED
    efficiency: float = 0.0
    temperature: float = 25.0
    operator_id: Optional[int] = Field(default=None, foreign_key="employee.id")


class Client(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    client_name: str
    company_name: str = ""
    gstin: str = ""
    billing_address: str = ""
    shipping_address: str = ""
    contact_person: str = ""
    phone: str = ""
    email: str = ""
    state: str = ""
    credit_limit: int = 0
    created_date: date = Field(default_factory=date.today)
    is_active: bool = True


class Order(SQLModel, table=True):
    __tablename__ = "sales_order"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: Optional[int] = Field(default=None, foreign_key="client.id", index=True)
    client_name: str
    product_key: str
    quantity: float
    amount: int
    order_date: date = Field(default_factory=date.today)
    status: OrderStatus = OrderStatus.PENDING


class Invoice(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_number: str = Field(index=True, unique=True)
    invoice_date: date = Field(default_factory=date.today)
    order_id: Optional[int] = Field(default=None, foreign_key="sales_order.id")
    client_id: Optional[int] = Field(default=None, foreign_key="client.id", index=True)
    # Client details as they were when the invoice was issued
    client_name: str
    client_address: str = ""
    client_gstin: str = ""
    client_state: str
    company_state: str
    gst_type: GSTType
    cgst_rate: float = 0.0
    sgst_rate: float = 0.0
    igst_rate: float = 0.0
    subtotal: int = 0
    cgst_amount: int = 0
    sgst_amount: int = 0
    igst_amount: int = 0
    total_tax: int = 0
    grand_total: int = 0
    status: InvoiceStatus = InvoiceStatus.DRAFT

    lines: List["InvoiceLine"] = Relationship(back_populates="invoice")


class InvoiceLine(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_id: int = Field(foreign_key="invoice.id")
    position: int = 0
    product_key: str
    hsn_code: str
    quantity: float
    rate: float
    taxable_value: int

    invoice: Optional["Invoice"] = Relationship(back_populates="lines")


class GSTChallan(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    challan_number: str = Field(index=True, unique=True)
    tax_period: str  # YYYY-MM
    gstin: str
    cgst_amount: int = 0
    sgst_amount: int = 0
    igst_amount: int = 0
    interest_amount: int = 0
    penalty_amount: int = 0
    total_payable: int = 0
    payment_mode: PaymentMode = PaymentMode.NET_BANKING
    status: ChallanStatus = ChallanStatus.PENDING
    created_date: date = Field(default_factory=date.today)


class Transaction(SQLModel, table=True):
    __tablename__ = "ledger_transaction"
    # At most one system-managed entry per originating document.
    __table_args__ = (
        UniqueConstraint("document_type", "document_id", name="uq_ledger_document"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    description: str
    txn_type: TransactionType
    amount: int
    txn_date: date = Field(default_factory=date.today)
    status: PaymentStatus = PaymentStatus.PAID
    source: TransactionSource = TransactionSource.MANUAL
    category: TransactionCategory = TransactionCategory.OTHER
    reference_id: Optional[int] = None
    reference_number: Optional[str] = None
    document_type: Optional[str] = None  # invoice / challan / payroll
    document_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def ledger_key(self) -> Optional[str]:
        if not self.document_type:
            return None
        return f"{self.document_type}:{self.document_id}"


class Employee(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    employee_code: str = Field(index=True, unique=True)
    name: str
    role: EmployeeRole = EmployeeRole.OPERATOR
    department: Department = Department.PRODUCTION
    shift: Shift = Shift.MORNING
    # Last marked status only; AttendanceRecord is authoritative.
    attendance: AttendanceStatus = AttendanceStatus.PRESENT


class AttendanceRecord(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="uq_attendance_employee_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="employee.id", index=True)
    work_date: date = Field(index=True)
    status: AttendanceStatus
    check_in_time: Optional[str] = None  # HH:MM
    check_out_time: Optional[str] = None  # HH:MM
    notes: Optional[str] = None
    overtime_hours: float = 0.0


class SalaryConfig(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="employee.id", unique=True)
    base_monthly_salary: int
    per_day_salary: int
    overtime_rate: int  # per hour
    allowances: int = 0
    pf_percent: float = 12.0  # % of basic
    esi_percent: float = 0.75  # % of gross
    other_deductions: int = 0


class PayrollRecord(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="uq_payroll_employee_month"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="employee.id", index=True)
    month: str = Field(index=True)  # YYYY-MM

    working_days: int = 0
    present_days: int = 0
    half_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    leave_days: int = 0
    overtime_hours: float = 0.0

    basic_salary: int = 0
    overtime_pay: int = 0
    allowances: int = 0
    gross_salary: int = 0

    pf_deduction: int = 0
    esi_deduction: int = 0
    other_deductions: int = 0
    total_deductions: int = 0

    net_salary: int = 0

    status: PayrollStatus = PayrollStatus.DRAFT
    processed_date: Optional[date] = None


class ProcessedMonth(SQLModel, table=True):
    month: str = Field(primary_key=True)  # YYYY-MM
    processed_at: datetime = Field(default_factory=datetime.utcnow)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    password_hash: str
    role: UserRole = UserRole.OPERATOR


class UserAuditLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    actor: str
    action: str
    target_username: str
    role: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)
