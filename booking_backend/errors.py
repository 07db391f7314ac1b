from __future__ import annotations


class BookingError(Exception):
    """Errore di dominio con messaggio per il client e status HTTP associato."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(BookingError):
    status_code = 400


class AuthorizationError(BookingError):
    status_code = 401


class BusinessRuleError(BookingError):
    status_code = 400


class CancellationWindowError(BusinessRuleError):
    # Il client storico si aspetta 401 per l'annullamento fuori tempo
    status_code = 401


class NotFoundError(BookingError):
    status_code = 404


class EnqueueError(Exception):
    """La coda non ha accettato il job."""
