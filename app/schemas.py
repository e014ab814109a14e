from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models import PaymentStatus

# Request payloads keep the wire names the wizard client already sends.
# Every field is optional here: presence is checked by the record stores,
# which answer with a ValidationError (400) listing what is missing.


class BookingCreate(BaseModel):
    state: str | None = None
    vehicle_registration: str | None = Field(default=None, alias="wheelerRegNo")
    chassis_number: str | None = Field(default=None, alias="chassisNo")
    engine_number: str | None = Field(default=None, alias="engineNo")
    idempotency_key: str | None = Field(
        default=None, alias="idempotencyKey", max_length=128
    )

    model_config = ConfigDict(populate_by_name=True)


class CustomerCreate(BaseModel):
    booking_id: int | str | None = Field(default=None, alias="bookingId")
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    delivery_address: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class PhaseAccepted(BaseModel):
    message: str
    booking_id: int = Field(serialization_alias="bookingId")


class BookingResponse(BaseModel):
    id: int
    state: str
    vehicle_registration: str
    chassis_number: str
    engine_number: str
    idempotency_key: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerResponse(BaseModel):
    id: int
    booking_id: int
    name: str
    email: str | None
    phone: str
    delivery_address: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    amount: Decimal
    status: PaymentStatus
    transaction_id: str
    attachment_reference: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConsolidatedRow(BookingResponse):
    """
    One booking joined with at most one customer and one payment.
    `None` is the explicit marker for a phase that was never submitted.
    """

    customer: CustomerResponse | None = None
    payment: PaymentResponse | None = None
