# 内部运费报价接口 + 历史记录

from __future__ import annotations
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freight_rate.api.v1.errors import to_http_error
from freight_rate.api.v1.schemas import RateCalculateIn
from freight_rate.core.config import settings
from freight_rate.core.errors import FreightRateError
from freight_rate.db.session import get_db
from freight_rate.repository.freight_rate_repo import list_history
from freight_rate.services.freight.freight_cal_service import calculate_and_record


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/freight-rates", tags=["freight-rates"])


@router.post("/calculate")
def calculate(body: RateCalculateIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        result = calculate_and_record(db, body.to_rate_request())
    except FreightRateError as exc:
        raise to_http_error(exc) from exc
    except Exception as exc:
        logger.exception("freight rate calculation failed")
        raise HTTPException(status_code=500, detail=f"Rate calculation failed: {exc}") from exc
    return {"data": result.to_dict()}


@router.get("/history")
def history(
    limit: int = Query(default=settings.RATE_HISTORY_LIMIT, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return {"data": list_history(db, limit=limit)}
