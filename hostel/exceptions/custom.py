class StoreError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class CatalogError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PaymentError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotificationError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(Exception):
    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Rate limit exceeded for {service}")


class BookingNotFoundError(Exception):
    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class BookingCreationError(Exception):
    def __init__(self, message: str, stage: str):
        self.message = message
        self.stage = stage
        super().__init__(message)


class CheckInIncompleteError(Exception):
    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Check-in data incomplete for booking {booking_id}")


class StaleBookingError(Exception):
    def __init__(self, booking_id: str, expected_status: str):
        self.booking_id = booking_id
        self.expected_status = expected_status
        super().__init__(
            f"Booking {booking_id} is no longer in status '{expected_status}'"
        )
