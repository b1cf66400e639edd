"""
Domain errors raised by the ordering core.

Business-rule outcomes in the cart never raise; these cover authorization,
lookup, precondition and infrastructure failures. Each carries the HTTP status
the API layer answers with.
"""


class OrderingError(Exception):
    status_code = 400

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__doc__ or self.__class__.__name__
        super().__init__(self.message)


class Unauthenticated(OrderingError):
    """You must be logged in."""
    status_code = 401


class Forbidden(OrderingError):
    """You are not allowed to do that."""
    status_code = 403


class NotFound(OrderingError):
    """Not found."""
    status_code = 404


class EmptyCart(OrderingError):
    """Your cart is empty."""
    status_code = 400


class InvalidTransition(OrderingError):
    """Order status change not allowed."""
    status_code = 409


class Conflict(OrderingError):
    """Resource already exists."""
    status_code = 409


class StorageUnavailable(OrderingError):
    """Database not available."""
    status_code = 503
