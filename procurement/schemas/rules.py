from typing import Optional

from pydantic import BaseModel


class RuleEvaluation(BaseModel):
    sku: str
    vendor: str = ""
    brand: str = ""
    item_name: str = ""
    outlet: str = ""
    current_stock: float = 0
    standard_qty: float = 0


class RuleDecisionRead(BaseModel):
    quantity: float
    justification: Optional[str] = None
