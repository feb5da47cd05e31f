from datetime import date, datetime
from typing import Optional, List

from sqlmodel import SQLModel

from jari_erp.models import (
    AttendanceStatus,
    ChallanStatus,
    Department,
    EmployeeRole,
    GSTType,
    InventoryCategory,
    InvoiceStatus,
    MachineStatus,
    MachineType,
    OrderStatus,
    PaymentMode,
    PaymentStatus,
    PayrollStatus,
    Shift,
    TransactionCategory,
    TransactionType,
    UserRole,
)


class ItemCreate(SQLModel):
    material_key: str
    name: str
    category: InventoryCategory = InventoryCategory.RAW_MATERIAL
    unit: str = "kg"
    quantity: float = 0.0
    min_stock: float = 0.0
    estimated_value: float = 0.0


class ItemQuantityUpdate(SQLModel):
    quantity: float


class StockReceipt(SQLModel):
    quantity: float


class MachineCreate(SQLModel):
    name: str
    machine_type: MachineType
    status: MachineStatus = MachineStatus.STOPPED
    temperature: float = 25.0
    operator_id: Optional[int] = None


class MachineStatusUpdate(SQLModel):
    status: MachineStatus


class ClientCreate(SQLModel):
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


class ClientUpdate(SQLModel):
    client_name: Optional[str] = None
    company_name: Optional[str] = None
    gstin: Optional[str] = None
    billing_address: Optional[str] = None
    shipping_address: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    state: Optional[str] = None
    credit_limit: Optional[int] = None
    is_active: Optional[bool] = None


class OrderCreate(SQLModel):
    client_id: Optional[int] = None
    client_name: str = ""
    product_key: str
    quantity: float
    amount: int
    order_date: Optional[date] = None
    status: OrderStatus = OrderStatus.PENDING


class OrderStatusUpdate(SQLModel):
    status: OrderStatus


class InvoiceLineCreate(SQLModel):
    product_key: str
    hsn_code: str = ""
    quantity: float
    rate: float


class InvoiceLineRead(SQLModel):
    product_key: str
    hsn_code: str
    quantity: float
    rate: float
    taxable_value: int


class InvoiceTotals(SQLModel):
    gst_type: GSTType
    cgst_rate: float
    sgst_rate: float
    igst_rate: float
    subtotal: int
    cgst_amount: int
    sgst_amount: int
    igst_amount: int
    total_tax: int
    grand_total: int


class InvoiceCreate(SQLModel):
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    order_id: Optional[int] = None
    client_id: Optional[int] = None
    client_name: str = ""
    client_address: str = ""
    client_gstin: str = ""
    client_state: str = ""
    lines: List[InvoiceLineCreate]
    gst_rate: Optional[float] = None
    status: InvoiceStatus = InvoiceStatus.DRAFT


class InvoiceRead(SQLModel):
    id: int
    invoice_number: str
    invoice_date: date
    order_id: Optional[int] = None
    client_id: Optional[int] = None
    client_name: str
    client_address: str
    client_gstin: str
    client_state: str
    company_state: str
    gst_type: GSTType
    cgst_rate: float
    sgst_rate: float
    igst_rate: float
    subtotal: int
    cgst_amount: int
    sgst_amount: int
    igst_amount: int
    total_tax: int
    grand_total: int
    status: InvoiceStatus
    lines: List[InvoiceLineRead] = []


class InvoiceDraft(SQLModel):
    invoice_number: str
    order_id: int
    client_id: Optional[int] = None
    client_name: str
    client_address: str
    client_gstin: str
    client_state: str
    lines: List[InvoiceLineRead]


class InvoiceStatusUpdate(SQLModel):
    status: InvoiceStatus


class ChallanCreate(SQLModel):
    challan_number: Optional[str] = None
    tax_period: str
    gstin: Optional[str] = None
    cgst_amount: Optional[int] = None
    sgst_amount: Optional[int] = None
    igst_amount: Optional[int] = None
    interest_amount: int = 0
    penalty_amount: int = 0
    payment_mode: PaymentMode = PaymentMode.NET_BANKING
    status: ChallanStatus = ChallanStatus.PENDING


class ChallanStatusUpdate(SQLModel):
    status: ChallanStatus


class PeriodTaxAmounts(SQLModel):
    tax_period: str
    cgst_amount: int
    sgst_amount: int
    igst_amount: int


class BillingSummary(SQLModel):
    total_invoices: int
    paid_invoices: int
    pending_challans: int
    total_gst_collected: int
    total_gst_paid: int


class ManualTransactionCreate(SQLModel):
    description: str
    txn_type: TransactionType
    amount: int
    txn_date: Optional[date] = None
    category: TransactionCategory = TransactionCategory.OTHER
    status: PaymentStatus = PaymentStatus.PAID


class FinanceSummary(SQLModel):
    total_revenue: int
    total_expenses: int
    profit: int
    outstanding_receivables: int
    outstanding_payments: int


class EmployeeCreate(SQLModel):
    employee_code: str
    name: str
    role: EmployeeRole = EmployeeRole.OPERATOR
    department: Department = Department.PRODUCTION
    shift: Shift = Shift.MORNING
    attendance: AttendanceStatus = AttendanceStatus.PRESENT


class EmployeeAttendanceFlag(SQLModel):
    attendance: AttendanceStatus


class AttendanceUpsert(SQLModel):
    employee_id: int
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    notes: Optional[str] = None
    overtime_hours: float = 0.0


class AttendanceUpdate(SQLModel):
    status: Optional[AttendanceStatus] = None
    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    notes: Optional[str] = None
    overtime_hours: Optional[float] = None


class AttendanceStats(SQLModel):
    total: int
    present: int
    absent: int
    half_day: int
    late: int
    on_leave: int
    total_overtime_hours: float


class SalaryConfigUpdate(SQLModel):
    base_monthly_salary: Optional[int] = None
    per_day_salary: Optional[int] = None
    overtime_rate: Optional[int] = None
    allowances: Optional[int] = None
    pf_percent: Optional[float] = None
    esi_percent: Optional[float] = None
    other_deductions: Optional[int] = None


class PayrollSummary(SQLModel):
    month: str
    total_employees: int
    total_gross_salary: int
    total_deductions: int
    total_net_salary: int
    status: PayrollStatus


class DashboardAlert(SQLModel):
    id: str
    alert_type: str
    subject: str
    severity: str


class DashboardRead(SQLModel):
    running_machines: int
    avg_efficiency: int
    inventory_value: float
    active_workforce: int
    pending_orders: int
    low_stock_items: List[str] = []
    alerts: List[DashboardAlert] = []


class UserCreate(SQLModel):
    username: str
    password: str
    role: UserRole = UserRole.OPERATOR


class UserUpdate(SQLModel):
    password: Optional[str] = None
    role: Optional[UserRole] = None


class UserRead(SQLModel):
    id: int
    username: str
    role: UserRole
    permissions: List[str] = []


class UserAuditRead(SQLModel):
    id: int
    actor: str
    action: str
    target_username: str
    role: str
    created_at: datetime
