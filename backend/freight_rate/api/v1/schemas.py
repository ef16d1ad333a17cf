# 运费接口的请求体；字段名与前端 / 旧接口保持 camelCase

from __future__ import annotations
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from freight_rate.services.freight.freight_compute import CartItem
from freight_rate.services.freight.freight_rate_service import RateRequest


class CartItemIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    weight: float = Field(..., gt=0, description="grams")
    length: float = Field(..., gt=0, description="mm")
    width: float = Field(..., gt=0, description="mm")
    height: float = Field(..., gt=0, description="mm")
    quantity: int = Field(..., gt=0)
    product_id: Optional[str] = Field(None, alias="productId")

    def to_cart_item(self) -> CartItem:
        return CartItem(
            weight_g=self.weight,
            length_mm=self.length,
            width_mm=self.width,
            height_mm=self.height,
            quantity=self.quantity,
            product_id=self.product_id,
        )


class RateCalculateIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[CartItemIn] = Field(..., min_length=1)
    destination_postal_code: str = Field(..., min_length=1, alias="destinationPostalCode")
    warehouse_id: Optional[Union[int, str]] = Field(None, alias="warehouseId")
    origin_postal_code: Optional[str] = Field(None, alias="originPostalCode")
    distance_km: Optional[float] = Field(None, ge=0, alias="distanceKm")

    def to_rate_request(self) -> RateRequest:
        return RateRequest(
            items=[i.to_cart_item() for i in self.items],
            destination_postal_code=self.destination_postal_code.strip(),
            origin_postal_code=(self.origin_postal_code or "").strip() or None,
            warehouse_id=self.warehouse_id,
            distance_km=self.distance_km,
        )


class FreightCalcIn(RateCalculateIn):
    freight_service_id: Optional[str] = Field(None, alias="freightServiceId")
