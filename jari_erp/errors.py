from typing import Optional

from fastapi import HTTPException


class NotFound(HTTPException):
    def __init__(self, entity: str, entity_id: Optional[object] = None):
        detail = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(status_code=404, detail=detail)
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStock(HTTPException):
    """Raised when a material is short; carries what the caller needs to render it."""

    def __init__(self, material: str, required: float, available: float):
        super().__init__(
            status_code=409,
            detail={
                "reason": "insufficient_stock",
                "material": material,
                "required": required,
                "available": available,
            },
        )
        self.material = material
        self.required = required
        self.available = available


class InvalidInput(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)
