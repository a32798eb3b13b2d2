from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from app.models.booking import BookingStatus


class BookingCreate(BaseModel):
    equipment_id: int
    renter_id: int
    start_date: date
    end_date: date
    message: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    equipment_id: int
    renter_id: int
    start_date: date
    end_date: date
    status: BookingStatus
    total_price: Decimal
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuoteResponse(BaseModel):
    equipment_id: int
    start_date: date
    end_date: date
    days: int
    total_price: Decimal
