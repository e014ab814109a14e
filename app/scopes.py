from enum import StrEnum


class BookingScope(StrEnum):
    # Admin scopes; the wizard phases themselves are public
    ADMIN = "admin:bookings"
    ADMIN_READ = "admin:bookings:read"


BOOKING_SCOPE_DESCRIPTIONS: dict[str, str] = {
    BookingScope.ADMIN: "Full administrative access to vehicle bookings.",
    BookingScope.ADMIN_READ: "Read the consolidated booking report (admin).",
}
