"""Error taxonomy shared by the scheduling core and the HTTP layer."""

from fastapi import status


class AppointmentError(Exception):
    """Base class for failures surfaced to API callers as ``{error, detail}``."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        body = {'error': self.message}
        if self.detail:
            body['detail'] = self.detail
        return body


class FormatError(AppointmentError, ValueError):
    """Malformed date or time input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(AppointmentError):
    status_code = status.HTTP_404_NOT_FOUND


class SlotConflict(AppointmentError):
    """The requested interval overlaps an active appointment."""

    status_code = status.HTTP_409_CONFLICT


class ProvisioningError(AppointmentError):
    """The online meeting could not be created; nothing was booked."""

    status_code = status.HTTP_502_BAD_GATEWAY


class StoreError(AppointmentError):
    """The database could not be reached. Safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class NotificationError(AppointmentError):
    # Logged only; never turned into a response.
    pass
