"""
Reservation-related exceptions.
"""


class ReservationError(Exception):
    """Raised when the reservation insert is rejected by Supabase."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class SlotUnavailableError(ReservationError):
    """Raised when another client reserved the slot first."""
    pass
