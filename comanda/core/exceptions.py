"""
Domain exceptions for Comanda

Routes translate these into JSON error responses; nothing here knows about HTTP.
"""


class ComandaError(Exception):
    """Base class for application errors"""


class ConfigurationError(ComandaError):
    """A required setting is missing or invalid"""


class NotFoundError(ComandaError):
    """A requested record does not exist"""


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class MercadoPagoAPIError(ComandaError):
    """MercadoPago answered with a non-success status or could not be reached"""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)
