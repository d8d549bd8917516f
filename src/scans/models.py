"""Scan data models."""

from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


SpecValue = Optional[Union[int, float, str]]


class StorageItem(BaseModel):
    """One drive in a scan's storage list."""

    model_config = ConfigDict(extra='ignore')

    Model: Optional[str] = None
    Size_GB: Optional[float] = None
    Type: Optional[str] = None
    BusType: Optional[str] = None


class ScanSpec(BaseModel):
    """Spec sheet posted by the scanner tool. Unknown keys are kept."""

    model_config = ConfigDict(extra='allow')

    Brand: str = Field(..., min_length=1)
    Model: str = Field(..., min_length=1)
    CPU: str = Field(..., min_length=1)
    Cores: SpecValue = None
    Threads: SpecValue = None
    BaseSpeed_MHz: SpecValue = None
    RAM_GB: SpecValue = None
    RAM_Type: Optional[str] = None
    RAM_Speed_MHz: SpecValue = None
    Storage: List[StorageItem] = Field(default_factory=list)
    GPU: Optional[str] = None
    Display_Resolution: Optional[str] = None
    Screen_Size_inch: Optional[float] = None
    OS: Optional[str] = None
    Scan_Time: Optional[str] = None

    def to_item(self) -> dict:
        """Dump the fields the scanner actually sent, with full storage entries."""
        data = self.model_dump(exclude_unset=True)
        data['Storage'] = [drive.model_dump() for drive in self.Storage]
        return data
