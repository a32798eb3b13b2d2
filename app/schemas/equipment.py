from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from app.models.equipment import EquipmentCategory
from app.utils.validation_helpers import validate_date_range


class EquipmentBase(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: EquipmentCategory
    price_per_day: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    available_from: date
    available_until: date
    location: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)


class EquipmentCreate(EquipmentBase):
    @model_validator(mode="after")
    def check_window(self):
        validate_date_range(self.available_from, self.available_until)
        return self


class EquipmentResponse(EquipmentBase):
    id: int
    owner_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DateRange(BaseModel):
    start_date: date
    end_date: date


class ContactOwnerRequest(BaseModel):
    sender_id: int
    text: str
