from typing import List, Optional

from fastapi import APIRouter, Depends

from procurement.dependencies import Services, get_services, raise_for_result
from procurement.repositories.orders import LineItem
from procurement.schemas.orders import EligibleOrder, POCreate, POFromUI, TimedSweep

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/po")
def create_po(payload: POCreate, services: Services = Depends(get_services)):
    line_items = None
    if payload.line_items is not None:
        line_items = [LineItem(**item.model_dump()) for item in payload.line_items]
    result = services.orders.create_po(
        payload.outlet,
        payload.brand,
        payload.po_number,
        order_type=payload.order_type,
        line_items=line_items,
    )
    return raise_for_result(result)


@router.post("/po/next")
def create_po_from_ui(payload: POFromUI, services: Services = Depends(get_services)):
    return raise_for_result(services.orders.create_po_from_ui(payload.outlet, payload.brand))


@router.post("/batch")
def generate_from_batch(services: Services = Depends(get_services)):
    return {"status": "completed", "stats": services.orders.generate_pos_from_batch()}


@router.post("/send-approved")
def send_approved(services: Services = Depends(get_services)):
    return {"status": "completed", "stats": services.orders.send_approved_pos()}


@router.post("/refresh")
def refresh_values(services: Services = Depends(get_services)):
    return {"status": "completed", "updated": services.orders.refresh_po_values()}


@router.post("/close-old")
def close_old(payload: Optional[TimedSweep] = None, services: Services = Depends(get_services)):
    now = payload.now if payload else None
    return {"status": "completed", "stats": services.orders.close_old_orders(now=now)}


@router.get("/eligible-for-grn", response_model=List[EligibleOrder])
def eligible_for_grn(services: Services = Depends(get_services)):
    return services.orders.get_eligible_orders_for_grn()


@router.post("/{number}/approve")
def approve_po(number: str, services: Services = Depends(get_services)):
    return raise_for_result(services.orders.approve_po(number))


@router.post("/{number}/send")
def send_po(number: str, services: Services = Depends(get_services)):
    return {"orderNumber": number, "sendStatus": services.orders.send_order(number)}


@router.post("/{number}/fulfillment")
def recompute_fulfillment(number: str, services: Services = Depends(get_services)):
    return raise_for_result(services.orders.update_order_fulfillment(number))


@router.post("/{number}/late-grn")
def reopen_for_late_grn(number: str, services: Services = Depends(get_services)):
    return raise_for_result(services.orders.handle_late_grn(number))
