from typing import Optional

from fastapi import APIRouter, Depends

from procurement.dependencies import Services, get_services, raise_for_result
from procurement.schemas.grns import GRNApproval, GRNCreate
from procurement.schemas.orders import TimedSweep

router = APIRouter(prefix="/grns", tags=["GRN"])


@router.post("/")
def create_grn(payload: GRNCreate, services: Services = Depends(get_services)):
    result = services.grns.create_grn(
        payload.order_number,
        payload.invoice_number,
        payload.amount,
        date=payload.date,
        notes=payload.notes,
    )
    return raise_for_result(result)


@router.post("/auto-approve")
def auto_approve(payload: Optional[TimedSweep] = None, services: Services = Depends(get_services)):
    now = payload.now if payload else None
    return {"status": "completed", "stats": services.grns.auto_approve_old_grns(now=now)}


@router.post("/{number}/approve")
def approve_grn(number: str, payload: Optional[GRNApproval] = None, services: Services = Depends(get_services)):
    approval_type = payload.approval_type if payload else "Manual"
    return raise_for_result(services.grns.approve_grn(number, approval_type=approval_type))
