# backend/exceptions.py
"""
Typed business errors raised by the service layer.

Every error carries an HTTP status and a machine-readable code; main.py
turns them into JSON responses, so services never import FastAPI.
"""


class DomainError(Exception):
    status_code = 400
    code = "DOMAIN_ERROR"

    def __init__(self, message: str, **data):
        super().__init__(message)
        self.message = message
        self.data = data


class NotFoundError(DomainError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(DomainError):
    status_code = 409
    code = "CONFLICT"


class InvalidQuantityError(DomainError):
    code = "INVALID_QUANTITY"


class InvalidRestockError(DomainError):
    code = "INVALID_RESTOCK"


class InsufficientStockError(DomainError):
    code = "INSUFFICIENT_STOCK"


class InsufficientPaymentError(DomainError):
    code = "INSUFFICIENT_PAYMENT"


class UnknownDeliveryMethodError(DomainError):
    code = "UNKNOWN_DELIVERY_METHOD"


class InvalidStatusTransitionError(DomainError):
    code = "INVALID_STATUS_TRANSITION"


class ImmutableRecordError(DomainError):
    code = "IMMUTABLE_RECORD"


class InvalidTransferError(DomainError):
    code = "INVALID_TRANSFER"
