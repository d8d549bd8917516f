"""Listing data models."""

import math
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from scans.models import StorageItem


SpecValue = Optional[Union[int, float, str]]


class ListingOverrides(BaseModel):
    """
    Per-field corrections the operator typed over a scan (``formData``).

    Every field is optional; a field left as None or a blank string falls back
    to the scan's value.
    """

    model_config = ConfigDict(extra='ignore')

    brand: Optional[str] = None
    model: Optional[str] = None
    cpu: Optional[str] = None
    cores: SpecValue = None
    threads: SpecValue = None
    base_speed_mhz: SpecValue = None
    ram_gb: SpecValue = None
    ram_type: Optional[str] = None
    ram_speed_mhz: SpecValue = None
    gpu: Optional[str] = None
    display_resolution: Optional[str] = None
    screen_size_inch: Optional[float] = None
    os: Optional[str] = None
    storage: Optional[List[StorageItem]] = None

    def provided(self) -> Dict[str, Any]:
        """Overrides that actually carry a value."""
        values = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if name == 'storage':
                value = [drive.model_dump() for drive in value]
            values[name] = value
        return values


class ListingExtras(BaseModel):
    """Commercial terms attached to a listing. Malformed values become None."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    condition: Optional[str] = None
    negotiable: Optional[bool] = None
    battery: Optional[str] = None
    special_features: Optional[List[str]] = Field(default=None, alias='specialFeatures')
    guarantee_months: Optional[Union[int, float]] = Field(default=None, alias='guaranteeMonths')
    guarantee_provider: Optional[str] = Field(default=None, alias='guaranteeProvider')

    @field_validator('negotiable', mode='before')
    @classmethod
    def _bool_only(cls, value: Any) -> Any:
        return value if isinstance(value, bool) else None

    @field_validator('guarantee_months', mode='before')
    @classmethod
    def _finite_number_only(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value if math.isfinite(value) else None

    @field_validator('special_features', mode='before')
    @classmethod
    def _string_list_only(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return None
        return [str(item) for item in value if item is not None]

    @field_validator('condition', 'battery', 'guarantee_provider', mode='before')
    @classmethod
    def _text_only(cls, value: Any) -> Any:
        if value is None:
            return None
        return str(value)

    @classmethod
    def from_payload(cls, payload: Any) -> 'ListingExtras':
        return cls.model_validate(payload if isinstance(payload, dict) else {})


class ManualListingFields(BaseModel):
    """Free-text fields the operator types when listing a machine without a scan."""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)

    brand: Optional[str] = None
    series: Optional[str] = None
    model: Optional[str] = None
    cpu_brand: Optional[str] = Field(default=None, alias='cpuBrand')
    cpu_series: Optional[str] = Field(default=None, alias='cpuSeries')
    cpu_generation: Optional[str] = Field(default=None, alias='cpuGeneration')
    cpu_model: Optional[str] = Field(default=None, alias='cpuModel')
    ram_type: Optional[str] = Field(default=None, alias='ramType')
    ram_capacity: Optional[str] = Field(default=None, alias='ramCapacity')
    storage_type: Optional[str] = Field(default=None, alias='storageTypeMain')
    storage_capacity: Optional[str] = Field(default=None, alias='storageCapacity')
    resolution: Optional[str] = None
    screen_size: Optional[str] = Field(default=None, alias='screenSize')
    gpu_type: Optional[str] = Field(default=None, alias='gpuType')
    gpu_brand: Optional[str] = Field(default=None, alias='gpuBrand')
    gpu_series: Optional[str] = Field(default=None, alias='gpuSeries')
    gpu_vram: Optional[str] = Field(default=None, alias='gpuVram')
    condition: Optional[str] = None
    negotiable: Optional[bool] = None
    battery: Optional[str] = Field(default=None, alias='batteryCondition')
    extra_items: Optional[List[str]] = Field(default=None, alias='extraItems')
    warranty: Optional[str] = None
    refresh_rate: Optional[str] = Field(default=None, alias='refreshRate')
    specs: Optional[str] = None

    @field_validator('negotiable', mode='before')
    @classmethod
    def _bool_only(cls, value: Any) -> Any:
        return value if isinstance(value, bool) else None

    @field_validator('extra_items', mode='before')
    @classmethod
    def _string_list_only(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return None
        return [str(item) for item in value if item is not None]

    @field_validator(
        'brand', 'series', 'model', 'cpu_brand', 'cpu_series', 'cpu_generation',
        'cpu_model', 'ram_type', 'ram_capacity', 'storage_type', 'storage_capacity',
        'resolution', 'screen_size', 'gpu_type', 'gpu_brand', 'gpu_series',
        'gpu_vram', 'condition', 'battery', 'warranty', 'refresh_rate', 'specs',
        mode='before'
    )
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if value is None or isinstance(value, (dict, list)):
            return None
        text = str(value).strip()
        return text or None
