from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class LineItemInput(BaseModel):
    sku: str
    item_name: str = ""
    avg_cost: float = 0.0
    order_qty: int = Field(0, ge=0)
    current_stock: float = 0.0
    justification: str = ""


class POCreate(BaseModel):
    outlet: str
    brand: str
    po_number: str
    order_type: str = "PO"
    line_items: Optional[List[LineItemInput]] = None


class POFromUI(BaseModel):
    outlet: str
    brand: str


class ApprovalRequest(BaseModel):
    approved_by: str = ""


class TimedSweep(BaseModel):
    now: Optional[datetime] = None


class EligibleOrder(BaseModel):
    orderNumber: str
    orderType: str
    outlet: str
    brand: str
    amount: float
    status: str
    dateCreated: Optional[datetime] = None
