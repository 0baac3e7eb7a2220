# app/errors.py
# Role: Exceptions raised by form parsing and business rules.
#       Database failures are not wrapped: routes catch SQLAlchemyError directly.


class FinanceError(Exception):
    """Base class for errors shown to the user as a single notice."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FinanceError):
    """A submitted form is incomplete or malformed. Raised before any write."""


class ResourceInUseError(FinanceError):
    """An account or category cannot be deleted while transactions reference it."""


class ReauthenticationError(FinanceError):
    """The password entered to confirm a destructive action did not match."""
