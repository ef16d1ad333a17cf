# 内部报价 vs Freightcom 报价对比

from __future__ import annotations
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from freight_rate.api.v1.errors import to_http_error
from freight_rate.api.v1.schemas import FreightCalcIn
from freight_rate.core.errors import FreightRateError
from freight_rate.db.session import get_db
from freight_rate.services.freight.freight_cal_service import calculate_with_comparison


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/freight-calc", tags=["freight-calc"])


@router.post("/calculate")
def calculate(body: FreightCalcIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        result = calculate_with_comparison(db, body.to_rate_request(), service_id=body.freight_service_id)
    except FreightRateError as exc:
        raise to_http_error(exc) from exc
    except Exception as exc:
        logger.exception("freight calc comparison failed")
        raise HTTPException(status_code=500, detail=f"Rate calculation failed: {exc}") from exc
    return {"data": result.to_dict()}
