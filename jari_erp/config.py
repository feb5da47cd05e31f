import json
import os
from typing import Dict, List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


# Raw material consumed (kg) each time a machine of the given type is started.
DEFAULT_MACHINE_CONSUMPTION: Dict[str, List[Dict[str, float]]] = {
    "WIRE_DRAWING": [
        {"material_key": "silver", "amount_per_start": 2},
        {"material_key": "copper", "amount_per_start": 3},
    ],
    "FLATTENING": [
        {"material_key": "copper", "amount_per_start": 2},
    ],
    "WINDING": [
        {"material_key": "polyester_yarn", "amount_per_start": 5},
    ],
    "ELECTROPLATING": [
        {"material_key": "silver", "amount_per_start": 1},
        {"material_key": "copper", "amount_per_start": 4},
    ],
}


def _database_url() -> str:
    url = os.getenv("DATABASE_URL", "sqlite:///./erp.db")
    # Normalize legacy postgres URL scheme if present
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def _machine_consumption() -> Dict[str, List[Dict[str, float]]]:
    raw = os.getenv("MACHINE_CONSUMPTION_JSON")
    if not raw:
        return DEFAULT_MACHINE_CONSUMPTION
    return json.loads(raw)


class Settings(BaseModel):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Jari Manufacturing ERP")
    DATABASE_URL: str = _database_url()
    ERP_SECRET: str = os.getenv("ERP_SECRET", "dev-secret")
    SESSION_MAX_AGE: int = int(os.getenv("SESSION_MAX_AGE", str(12 * 60 * 60)))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # ---------- Company profile ----------
    COMPANY_NAME: str = os.getenv("COMPANY_NAME", "Mirotec Corporation")
    COMPANY_GSTIN: str = os.getenv("COMPANY_GSTIN", "24AAAFM9339E1ZE")
    COMPANY_STATE: str = os.getenv("COMPANY_STATE", "gujarat")

    # ---------- Billing / production ----------
    GST_RATE: float = float(os.getenv("GST_RATE", "18"))
    NOMINAL_EFFICIENCY: float = float(os.getenv("NOMINAL_EFFICIENCY", "75"))
    MACHINE_CONSUMPTION: Dict[str, List[Dict[str, float]]] = _machine_consumption()

    # ---------- Backups ----------
    ENABLE_DAILY_BACKUP: bool = os.getenv("ENABLE_DAILY_BACKUP", "false").lower() == "true"
    AWS_REGION: str = os.getenv("AWS_REGION", "")
    S3_BUCKET: str = os.getenv("S3_BUCKET", "")
    S3_BACKUP_FOLDER: str = os.getenv("S3_BACKUP_FOLDER", "backups/db")


settings = Settings()
