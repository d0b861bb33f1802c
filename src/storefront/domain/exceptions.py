"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Input has the wrong shape or violates a simple business rule."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class AvailabilityError(DomainException):
    """Not enough stock for the requested quantity."""


class StateError(DomainException):
    """The requested lifecycle transition is not allowed from the current state."""


class PaymentError(DomainException):
    """The payment gateway failed or declined the payment.

    ``order_number`` is set when the order itself was stored and the
    payment can be retried against it.
    """

    def __init__(self, message: str, order_number: str | None = None) -> None:
        super().__init__(message)
        self.order_number = order_number


class ConcurrencyConflict(DomainException):
    """A lock timed out or a concurrent writer produced a conflicting row.

    Transient: the operation may succeed if retried.
    """
