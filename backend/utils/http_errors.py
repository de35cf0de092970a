from fastapi import HTTPException, status

from services.exceptions import (
    StoreError,
    NotFound,
    InsufficientStock,
    InvalidTransition,
    InvalidOrderRequest,
    ProductInUse,
    PaymentConflict,
    GatewayError,
)

# Domain failure -> HTTP status code. First match wins, so subclasses come first.
_STATUS_MAP = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (InsufficientStock, status.HTTP_400_BAD_REQUEST),
    (InvalidTransition, status.HTTP_400_BAD_REQUEST),
    (InvalidOrderRequest, status.HTTP_400_BAD_REQUEST),
    (ProductInUse, status.HTTP_409_CONFLICT),
    (PaymentConflict, status.HTTP_409_CONFLICT),
    (GatewayError, status.HTTP_502_BAD_GATEWAY),
)

def to_http(exc: StoreError) -> HTTPException:
    for exc_type, code in _STATUS_MAP:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
