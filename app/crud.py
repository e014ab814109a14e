from __future__ import annotations

import time
import warnings
from decimal import Decimal, InvalidOperation
from typing import Any

from loguru import logger
from tortoise.models import Model

from app.allocator import IdentifierAllocator, allocator, storage_guard
from app.exceptions import ReferentialGapWarning, ValidationError
from app.models import BookingDetails, CustomerDetails, PaymentDetails, PaymentStatus
from app.schemas import BookingResponse, CustomerResponse, PaymentResponse


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(**values: Any) -> None:
    """Raise ValidationError naming every missing or blank field."""
    missing = [name for name, value in values.items() if _is_blank(value)]
    if missing:
        raise ValidationError(missing)


def _check_lengths(model: type[Model], **values: Any) -> None:
    """Reject strings longer than the column allows, before anything is allocated."""
    too_long = []
    for name, value in values.items():
        limit = getattr(model._meta.fields_map[name], "max_length", None)
        if isinstance(value, str) and limit is not None and len(value) > limit:
            too_long.append(name)
    if too_long:
        raise ValidationError(
            too_long, f"Fields exceed maximum length: {', '.join(too_long)}"
        )


def _coerce_booking_id(value: Any) -> int:
    if _is_blank(value):
        raise ValidationError(["booking_id"])
    try:
        booking_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError(["booking_id"], "booking_id must be an integer") from None
    if booking_id <= 0:
        raise ValidationError(["booking_id"], "booking_id must be positive")
    return booking_id


def _coerce_amount(value: Any) -> Decimal:
    if _is_blank(value):
        raise ValidationError(["amount"])
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(["amount"], "amount must be a decimal number") from None
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(["amount"], "amount must be a positive number")
    return amount.quantize(Decimal("0.01"))


def validate_payment_fields(booking_id: Any, amount: Any) -> tuple[int, Decimal]:
    """Check phase-3 fields without touching storage. Returns the parsed values."""
    _require(booking_id=booking_id, amount=amount)
    return _coerce_booking_id(booking_id), _coerce_amount(amount)


def _transaction_id() -> str:
    # Time-derived, unique in practice; not a cryptographic guarantee.
    return f"TXN{time.time_ns() // 1_000_000}"


async def _flag_referential_gap(kind: str, booking_id: int) -> None:
    """Customers and payments may point at bookings that do not exist. Accept, but say so."""
    with storage_guard("checking booking reference"):
        exists = await BookingDetails.filter(id=booking_id).exists()
    if not exists:
        message = f"{kind} references unknown booking_id={booking_id}"
        logger.warning(message)
        warnings.warn(message, ReferentialGapWarning, stacklevel=3)


class BookingCRUD:
    collection = "bookings"

    def __init__(self, allocator: IdentifierAllocator):
        self.allocator = allocator

    async def create_booking(
        self,
        state: str | None,
        vehicle_registration: str | None,
        chassis_number: str | None,
        engine_number: str | None,
        idempotency_key: str | None = None,
    ) -> BookingResponse:
        """
        Persist phase 1 and return it with its allocated id.

        Without an idempotency key every call creates an independent booking.
        With a key, a repeated submission returns the booking first created
        under that key and allocates nothing.
        """
        _require(
            state=state,
            vehicle_registration=vehicle_registration,
            chassis_number=chassis_number,
            engine_number=engine_number,
        )
        _check_lengths(
            BookingDetails,
            state=state,
            vehicle_registration=vehicle_registration,
            chassis_number=chassis_number,
            engine_number=engine_number,
            idempotency_key=idempotency_key,
        )
        key = idempotency_key.strip() if idempotency_key else None
        key = key or None

        async def _insert(new_id: int) -> BookingDetails:
            if key is not None:
                existing = await BookingDetails.get_or_none(idempotency_key=key)
                if existing is not None:
                    logger.info(
                        "Replayed booking {} for idempotency key {}", existing.id, key
                    )
                    return existing
            inst = await BookingDetails.create(
                id=new_id,
                state=state,
                vehicle_registration=vehicle_registration,
                chassis_number=chassis_number,
                engine_number=engine_number,
                idempotency_key=key,
            )
            logger.info("Created booking {}", inst.id)
            return inst

        inst = await self.allocator.allocate_and_insert(self.collection, _insert)
        return BookingResponse.model_validate(inst, from_attributes=True)

    async def get_booking(self, booking_id: int) -> BookingResponse | None:
        with storage_guard("reading booking"):
            inst = await BookingDetails.get_or_none(id=booking_id)
        if not inst:
            return None
        return BookingResponse.model_validate(inst, from_attributes=True)


class CustomerCRUD:
    collection = "customers"

    def __init__(self, allocator: IdentifierAllocator):
        self.allocator = allocator

    async def create_customer(
        self,
        booking_id: int | str | None,
        name: str | None,
        phone: str | None,
        delivery_address: str | None,
        email: str | None = None,
    ) -> CustomerResponse:
        """Persist phase 2. The booking is referenced by id only and is not required to exist."""
        _require(
            booking_id=booking_id,
            name=name,
            phone=phone,
            delivery_address=delivery_address,
        )
        booking_id = _coerce_booking_id(booking_id)
        _check_lengths(CustomerDetails, name=name, phone=phone, email=email)
        await _flag_referential_gap("Customer", booking_id)

        async def _insert(new_id: int) -> CustomerDetails:
            return await CustomerDetails.create(
                id=new_id,
                booking_id=booking_id,
                name=name,
                email=None if _is_blank(email) else email,
                phone=phone,
                delivery_address=delivery_address,
            )

        inst = await self.allocator.allocate_and_insert(self.collection, _insert)
        logger.info("Created customer {} for booking {}", inst.id, booking_id)
        return CustomerResponse.model_validate(inst, from_attributes=True)

    async def list_customers(self, booking_id: int | None = None) -> list[CustomerResponse]:
        qs = CustomerDetails.all()
        if booking_id is not None:
            qs = qs.filter(booking_id=booking_id)
        with storage_guard("listing customers"):
            rows = await qs.order_by("id")
        return [CustomerResponse.model_validate(r, from_attributes=True) for r in rows]


class PaymentCRUD:
    collection = "payments"

    def __init__(self, allocator: IdentifierAllocator):
        self.allocator = allocator

    async def create_payment(
        self,
        booking_id: int | str | None,
        amount: Decimal | str | None,
        attachment_reference: str | None = None,
    ) -> PaymentResponse:
        """
        Persist phase 3. No gateway is consulted: status is always `completed`.
        `attachment_reference` is whatever the blob store returned, stored verbatim.
        """
        booking_id, parsed_amount = validate_payment_fields(booking_id, amount)
        _check_lengths(PaymentDetails, attachment_reference=attachment_reference)
        await _flag_referential_gap("Payment", booking_id)

        async def _insert(new_id: int) -> PaymentDetails:
            return await PaymentDetails.create(
                id=new_id,
                booking_id=booking_id,
                amount=parsed_amount,
                status=PaymentStatus.COMPLETED,
                transaction_id=_transaction_id(),
                attachment_reference=attachment_reference,
            )

        inst = await self.allocator.allocate_and_insert(self.collection, _insert)
        logger.info(
            "Recorded payment {} ({}) for booking {}",
            inst.id,
            inst.transaction_id,
            booking_id,
        )
        return PaymentResponse.model_validate(inst, from_attributes=True)

    async def list_payments(self, booking_id: int | None = None) -> list[PaymentResponse]:
        qs = PaymentDetails.all()
        if booking_id is not None:
            qs = qs.filter(booking_id=booking_id)
        with storage_guard("listing payments"):
            rows = await qs.order_by("id")
        return [PaymentResponse.model_validate(r, from_attributes=True) for r in rows]


booking_crud = BookingCRUD(allocator)
customer_crud = CustomerCRUD(allocator)
payment_crud = PaymentCRUD(allocator)
