import json
import logging
from datetime import datetime

import boto3
from sqlmodel import Session, select

from jari_erp.config import settings
from jari_erp.models import (
    AttendanceRecord,
    Client,
    Employee,
    GSTChallan,
    Invoice,
    InvoiceLine,
    Item,
    Machine,
    Order,
    PayrollRecord,
    ProcessedMonth,
    SalaryConfig,
    StockMovement,
    Transaction,
)

logger = logging.getLogger(__name__)

BACKUP_TABLES = {
    "items": Item,
    "stock_movements": StockMovement,
    "machines": Machine,
    "clients": Client,
    "orders": Order,
    "invoices": Invoice,
    "invoice_lines": InvoiceLine,
    "challans": GSTChallan,
    "transactions": Transaction,
    "employees": Employee,
    "attendance_records": AttendanceRecord,
    "salary_configs": SalaryConfig,
    "payroll_records": PayrollRecord,
    "processed_months": ProcessedMonth,
}


def _s3_client():
    if not settings.AWS_REGION:
        raise RuntimeError("AWS_REGION is not configured")
    return boto3.client("s3", region_name=settings.AWS_REGION)


def _bucket() -> str:
    if not settings.S3_BUCKET:
        raise RuntimeError("S3_BUCKET is not configured")
    return settings.S3_BUCKET


def build_backup_payload(session: Session) -> dict:
    payload = {"generated_at": datetime.utcnow().isoformat()}
    for name, model in BACKUP_TABLES.items():
        payload[name] = [row.model_dump(mode="json") for row in session.exec(select(model)).all()]
    return payload


def upload_raw(content: str, folder: str, filename: str) -> str:
    bucket = _bucket()
    key = f"{folder.rstrip('/')}/{filename}.json"
    client = _s3_client()
    client.put_object(
        Bucket=bucket,
        Key=key,
        Body=content.encode("utf-8"),
        ContentType="application/json",
    )
    return key


def run_backup(session: Session) -> dict:
    payload = build_backup_payload(session)
    filename = f"backup_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}"
    key = upload_raw(json.dumps(payload), folder=settings.S3_BACKUP_FOLDER, filename=filename)
    logger.info("Backup written to s3://%s/%s", settings.S3_BUCKET, key)
    return {
        "key": key,
        "created_at": datetime.utcnow().isoformat(),
    }
