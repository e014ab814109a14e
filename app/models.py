from enum import StrEnum

from tortoise import fields
from tortoise.models import Model


class PaymentStatus(StrEnum):
    COMPLETED = "completed"  # no gateway verification, set on submission


class BookingDetails(Model):
    # Allocated by app.allocator, never generated by the database
    id = fields.IntField(primary_key=True, generated=False)

    state = fields.CharField(max_length=100)
    vehicle_registration = fields.CharField(max_length=50)
    chassis_number = fields.CharField(max_length=50)
    engine_number = fields.CharField(max_length=50)

    idempotency_key = fields.CharField(max_length=128, null=True, unique=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:  # type: ignore
        table = "bookings"
        ordering = ["-created_at", "-id"]


class CustomerDetails(Model):
    id = fields.IntField(primary_key=True, generated=False)
    booking_id = fields.IntField(db_index=True)  # logical reference, no FK

    name = fields.CharField(max_length=200)
    email = fields.CharField(max_length=254, null=True)
    phone = fields.CharField(max_length=32)
    delivery_address = fields.TextField()

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:  # type: ignore
        table = "customers"
        ordering = ["id"]


class PaymentDetails(Model):
    id = fields.IntField(primary_key=True, generated=False)
    booking_id = fields.IntField(db_index=True)  # logical reference, no FK

    amount = fields.DecimalField(max_digits=10, decimal_places=2)
    status = fields.CharEnumField(PaymentStatus, default=PaymentStatus.COMPLETED)
    transaction_id = fields.CharField(max_length=32)
    attachment_reference = fields.CharField(max_length=255, null=True)

    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:  # type: ignore
        table = "payments"
        ordering = ["id"]
