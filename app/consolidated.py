from __future__ import annotations

from collections.abc import Iterable
from typing import TypeVar

from app.allocator import storage_guard
from app.models import BookingDetails, CustomerDetails, PaymentDetails
from app.schemas import ConsolidatedRow, CustomerResponse, PaymentResponse

R = TypeVar("R", CustomerDetails, PaymentDetails)


def _first_per_booking(rows: Iterable[R]) -> dict[int, R]:
    """
    Keep one row per booking_id. `rows` must arrive in ascending id order,
    so the lowest id wins when a phase was submitted more than once.
    """
    picked: dict[int, R] = {}
    for row in rows:
        picked.setdefault(row.booking_id, row)
    return picked


class ConsolidatedView:
    """
    Read-only left join of bookings with their customer and payment rows.

    - every booking appears exactly once, newest first (created_at, then id)
    - duplicate customers/payments for a booking: lowest id is attached
    - a phase never submitted is attached as None
    - customers/payments pointing at unknown bookings are left out
    """

    async def list_consolidated(self) -> list[ConsolidatedRow]:
        with storage_guard("building consolidated view"):
            bookings = await BookingDetails.all().order_by("-created_at", "-id")
            if not bookings:
                return []
            ids = [b.id for b in bookings]
            customers = await CustomerDetails.filter(booking_id__in=ids).order_by("id")
            payments = await PaymentDetails.filter(booking_id__in=ids).order_by("id")

        customer_map = _first_per_booking(customers)
        payment_map = _first_per_booking(payments)

        result = []
        for b in bookings:
            customer = customer_map.get(b.id)
            payment = payment_map.get(b.id)
            result.append(
                ConsolidatedRow(
                    id=b.id,
                    state=b.state,
                    vehicle_registration=b.vehicle_registration,
                    chassis_number=b.chassis_number,
                    engine_number=b.engine_number,
                    idempotency_key=b.idempotency_key,
                    created_at=b.created_at,
                    customer=(
                        CustomerResponse.model_validate(customer, from_attributes=True)
                        if customer is not None
                        else None
                    ),
                    payment=(
                        PaymentResponse.model_validate(payment, from_attributes=True)
                        if payment is not None
                        else None
                    ),
                )
            )
        return result


consolidated_view = ConsolidatedView()
