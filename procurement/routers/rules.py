from fastapi import APIRouter, Depends

from procurement.dependencies import Services, get_services
from procurement.schemas.rules import RuleDecisionRead, RuleEvaluation

router = APIRouter(prefix="/rules", tags=["Business Rules"])


@router.post("/evaluate", response_model=RuleDecisionRead)
def evaluate_rules(payload: RuleEvaluation, services: Services = Depends(get_services)):
    decision = services.rules.apply_business_rules(
        payload.sku,
        payload.vendor,
        payload.brand,
        payload.item_name,
        payload.outlet,
        payload.current_stock,
        payload.standard_qty,
    )
    return RuleDecisionRead(quantity=decision.quantity, justification=decision.justification)


@router.post("/seed")
def seed_rules(services: Services = Depends(get_services)):
    created = services.rules.seed_business_rules()
    return {"status": "completed", "created": created}
