"""
   运费报价流水线的异常类型。
   校验/分类错误直接中止并带上出错的值；外部服务错误与业务层解耦，便于 API 层统一映射状态码。
"""

class FreightRateError(Exception):
    """Base for all rate calculation errors."""

class ValidationError(FreightRateError):
    """Malformed or missing input (items, postal codes, distance)."""

class InvalidDimensionsError(ValidationError):
    """Total shipment volume is zero, density cannot be computed."""

class ClassificationNotFoundError(FreightRateError):
    """Density or distance falls outside every configured range."""

class WarehouseNotFoundError(FreightRateError):
    """Requested warehouse does not exist or has no postal code."""

class NoOriginAvailableError(FreightRateError):
    """No candidate warehouse and no explicit origin postal code."""

class NoApplicableRateError(FreightRateError):
    """Rate lookup returned nothing for the freight class / distance pair."""

class ExternalServiceError(FreightRateError):
    """Routing or carrier-quote provider failure."""

class ExternalServiceTimeoutError(ExternalServiceError):
    """Provider did not finish within the allowed time."""
