from typing import Optional

from fastapi import APIRouter, Depends

from procurement.dependencies import Services, get_services, raise_for_result
from procurement.schemas.customer_orders import CustomerOrderCreate
from procurement.schemas.orders import ApprovalRequest, TimedSweep
from procurement.services.customer_order_service import OrderItemRequest

router = APIRouter(prefix="/customer-orders", tags=["Customer Orders"])


@router.post("/")
def create_customer_order(payload: CustomerOrderCreate, services: Services = Depends(get_services)):
    result = services.customer_orders.create_customer_order(
        payload.outlet,
        payload.brand,
        payload.customer_name,
        [OrderItemRequest(**item.model_dump()) for item in payload.items],
        customer_email=payload.customer_email,
        customer_phone=payload.customer_phone,
        customer_pic=payload.customer_pic,
        notes=payload.notes,
    )
    return raise_for_result(result)


@router.post("/auto-approve")
def auto_approve(payload: Optional[TimedSweep] = None, services: Services = Depends(get_services)):
    now = payload.now if payload else None
    return {"status": "completed", "stats": services.customer_orders.auto_approve_old_cos(now=now)}


@router.post("/{number}/approve")
def approve_customer_order(
    number: str,
    payload: Optional[ApprovalRequest] = None,
    services: Services = Depends(get_services),
):
    approved_by = payload.approved_by if payload else ""
    return raise_for_result(services.customer_orders.approve_customer_order(number, approved_by))


@router.post("/{number}/send")
def send_customer_order(number: str, services: Services = Depends(get_services)):
    return {"orderNumber": number, "sendStatus": services.customer_orders.send_customer_order(number)}
