# 业务异常 -> HTTP 状态码

from __future__ import annotations
import logging

from fastapi import HTTPException

from freight_rate.core.errors import (
    ClassificationNotFoundError, ExternalServiceError, FreightRateError,
    NoApplicableRateError, NoOriginAvailableError, ValidationError, WarehouseNotFoundError,
)

logger = logging.getLogger(__name__)


_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (WarehouseNotFoundError, 400),
    (NoOriginAvailableError, 400),
    (ClassificationNotFoundError, 422),
    (NoApplicableRateError, 422),
    (ExternalServiceError, 502),
)


def status_for(exc: Exception) -> int:
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return code
    return 500


def to_http_error(exc: FreightRateError) -> HTTPException:
    code = status_for(exc)
    if code >= 500:
        logger.error("rate calculation failed: %s", exc)
    return HTTPException(status_code=code, detail=str(exc))
