from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ClassificationRun(BaseModel):
    today: Optional[date] = None


class SkuClassificationRead(BaseModel):
    outlet: str
    brand: str
    sku: str
    item_name: str
    avg_cost: float
    rev_class: str
    margin_class: str
    velocity_class: str
    bin_qty: int
    suggested_qty: int
    current_stock: float
    final_order_qty: int
    usage_recommendation: str
    justification: str

    model_config = ConfigDict(from_attributes=True)


class CostBinRead(BaseModel):
    max_avg_cost: Optional[float]
    pack_qty: int


BinTableRead = Dict[str, List[CostBinRead]]
