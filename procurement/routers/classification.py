import math
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from procurement.core.exceptions import ConfigurationError
from procurement.dependencies import Services, get_services
from procurement.repositories.binning import BinTable
from procurement.schemas.classification import (
    BinTableRead,
    ClassificationRun,
    SkuClassificationRead,
)

router = APIRouter(prefix="/classification", tags=["Classification"])


def _bins_payload(bins: BinTable) -> dict:
    return {
        outlet: [
            {
                "max_avg_cost": None if math.isinf(cost_bin.max_avg_cost) else cost_bin.max_avg_cost,
                "pack_qty": cost_bin.pack_qty,
            }
            for cost_bin in outlet_bins
        ]
        for outlet, outlet_bins in bins.items()
    }


@router.post("/run", response_model=List[SkuClassificationRead])
def run_classification(payload: ClassificationRun, services: Services = Depends(get_services)):
    try:
        return services.classifier.classify_skus(today=payload.today)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.get("/bins", response_model=BinTableRead)
def get_bins(services: Services = Depends(get_services)):
    bins = services.binning.read_binning_config()
    if bins is None:
        raise HTTPException(status_code=404, detail="BinningConfig not found.")
    return _bins_payload(bins)


@router.post("/bins/recompute", response_model=BinTableRead)
def recompute_bins(services: Services = Depends(get_services)):
    if not services.classifier.sales.exists():
        raise HTTPException(status_code=404, detail="SalesData not found.")
    return _bins_payload(services.binning.recompute(services.classifier.sales.list_records()))
