from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class GRNCreate(BaseModel):
    order_number: str
    invoice_number: str
    amount: float
    date: Optional[datetime] = None
    notes: Optional[str] = None


class GRNApproval(BaseModel):
    approval_type: str = "Manual"
