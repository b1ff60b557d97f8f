from typing import List, Optional

from pydantic import BaseModel, Field


class CustomerOrderItem(BaseModel):
    item_code: str = ""
    item_name: str = ""
    quantity: float = Field(..., gt=0)
    cost_price: Optional[float] = None
    is_new: bool = False


class CustomerOrderCreate(BaseModel):
    outlet: str
    brand: str
    customer_name: str
    customer_email: str = ""
    customer_phone: str = ""
    customer_pic: str = ""
    notes: str = ""
    items: List[CustomerOrderItem]
