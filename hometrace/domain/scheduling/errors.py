"""Calendar core exceptions"""


class SchedulingError(ValueError):
    """Base class for misuse of the in-memory calendar state"""


class InvalidDropError(SchedulingError):
    """Drop target outside the visible week grid"""


class NoActiveDragError(SchedulingError):
    """Drop or hover received while no drag is in progress"""


class StoreError(Exception):
    """Base class for appointment record store failures"""

    def __init__(self, appointment_id=None, message: str = ""):
        self.appointment_id = appointment_id
        super().__init__(message or self.__class__.__name__)


class AppointmentNotFoundError(StoreError):
    """Appointment no longer exists in the record store"""


class StoreUnavailableError(StoreError):
    """Record store could not be reached or failed to apply the write"""
