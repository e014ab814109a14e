from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from loguru import logger

from app.cache import invalidate_consolidated_cache
from app.crud import booking_crud, customer_crud, payment_crud, validate_payment_fields
from app.schemas import (
    BookingCreate,
    BookingResponse,
    CustomerCreate,
    CustomerResponse,
    PaymentResponse,
    PhaseAccepted,
)
from app.storage import BlobStore, get_blob_store

router = APIRouter(prefix="/api", tags=["booking-wizard"])


# ---------------------------------------------------------------------------
# Phase 1: booking details
# ---------------------------------------------------------------------------


@router.post(
    "/booking-details",
    response_model=PhaseAccepted,
    status_code=status.HTTP_201_CREATED,
)
async def submit_booking_details(payload: BookingCreate) -> PhaseAccepted:
    booking = await booking_crud.create_booking(
        state=payload.state,
        vehicle_registration=payload.vehicle_registration,
        chassis_number=payload.chassis_number,
        engine_number=payload.engine_number,
        idempotency_key=payload.idempotency_key,
    )
    await invalidate_consolidated_cache()
    return PhaseAccepted(
        message="Booking information saved successfully", booking_id=booking.id
    )


@router.get("/booking-details/{booking_id}", response_model=BookingResponse)
async def get_booking_details(booking_id: int) -> BookingResponse:
    booking = await booking_crud.get_booking(booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found"
        )
    return booking


# ---------------------------------------------------------------------------
# Phase 2: customer / delivery details
# ---------------------------------------------------------------------------


@router.post(
    "/user-details",
    response_model=PhaseAccepted,
    status_code=status.HTTP_201_CREATED,
)
async def submit_user_details(payload: CustomerCreate) -> PhaseAccepted:
    customer = await customer_crud.create_customer(
        booking_id=payload.booking_id,
        name=payload.name,
        phone=payload.phone,
        delivery_address=payload.delivery_address,
        email=payload.email,
    )
    await invalidate_consolidated_cache()
    return PhaseAccepted(
        message="User information saved successfully", booking_id=customer.booking_id
    )


@router.get("/user-details", response_model=list[CustomerResponse])
async def list_user_details(
    booking_id: int | None = Query(default=None, alias="bookingId"),
) -> list[CustomerResponse]:
    return await customer_crud.list_customers(booking_id=booking_id)


# ---------------------------------------------------------------------------
# Phase 3: payment confirmation with optional evidence upload
# ---------------------------------------------------------------------------


@router.post(
    "/payment-details",
    response_model=PhaseAccepted,
    status_code=status.HTTP_201_CREATED,
)
async def submit_payment_details(
    booking_id: str | None = Form(default=None, alias="bookingId"),
    payment_amount: str | None = Form(default=None),
    transaction_screenshot: UploadFile | None = File(default=None),
    blob_store: BlobStore = Depends(get_blob_store),
) -> PhaseAccepted:
    # Reject bad fields before any bytes hit the blob store
    validate_payment_fields(booking_id, payment_amount)

    attachment_reference = None
    if transaction_screenshot is not None and transaction_screenshot.filename:
        data = await transaction_screenshot.read()
        attachment_reference = await blob_store.save(
            data, transaction_screenshot.filename
        )
        logger.debug("Payment evidence stored at {}", attachment_reference)

    payment = await payment_crud.create_payment(
        booking_id=booking_id,
        amount=payment_amount,
        attachment_reference=attachment_reference,
    )
    await invalidate_consolidated_cache()
    return PhaseAccepted(
        message="Payment details submitted successfully",
        booking_id=payment.booking_id,
    )


@router.get("/payment-details", response_model=list[PaymentResponse])
async def list_payment_details(
    booking_id: int | None = Query(default=None, alias="bookingId"),
) -> list[PaymentResponse]:
    return await payment_crud.list_payments(booking_id=booking_id)
