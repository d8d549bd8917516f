"""Receipt data models."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReceiptCreateRequest(BaseModel):
    """Receipt creation request model."""

    model_config = ConfigDict(extra='ignore')

    listing_id: Optional[str] = Field(default=None, description="Listing being sold")
    buyer_name: str = Field(..., min_length=1)
    buyer_phone: str = Field(..., min_length=1)
    buyer_address: Optional[str] = None
    sale_date: Optional[str] = None
    purchase_price: Any = Field(..., description="Positive amount; validated separately")
    seller_signature: Optional[str] = Field(default=None, description="Signature image as a data URL")
    notes: Optional[str] = None
    pc_specs_snapshot: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Specs at time of sale, required when no listing_id is given"
    )

    @field_validator('listing_id', 'buyer_address', 'sale_date', 'seller_signature', 'notes', mode='before')
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('buyer_name', 'buyer_phone', mode='before')
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value
