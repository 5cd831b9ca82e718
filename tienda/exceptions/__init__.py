"""Custom exceptions for the store order engine."""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union


def _fmt_qty(value: Union[int, Decimal]) -> str:
    return f"{int(value)}" if value % 1 == 0 else f"{value:.2f}".rstrip('0').rstrip('.')


@dataclass(frozen=True)
class StockShortage:
    """One product whose available stock does not cover the requested quantity."""
    product_id: int
    product_name: str
    available: int
    requested: int

    def to_dict(self):
        return {
            'producto_id': self.product_id,
            'producto': self.product_name,
            'disponible': self.available,
            'solicitado': self.requested,
        }

    def __str__(self):
        return f"{self.product_name} (disponible: {_fmt_qty(self.available)}, solicitado: {_fmt_qty(self.requested)})"


class TiendaError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(TiendaError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(TiendaError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class _ShortageError(BusinessLogicError):
    """Shared shape for errors that carry a list of stock shortages."""
    headline = "Stock insuficiente para"

    def __init__(self, shortages: List[StockShortage]):
        self.shortages = list(shortages)
        detail = '\n'.join(str(s) for s in self.shortages)
        message = f"{self.headline}:\n{detail}"
        payload = {'faltantes': [s.to_dict() for s in self.shortages]}
        super().__init__(message, status_code=409, payload=payload)

    @property
    def product_names(self) -> List[str]:
        return [s.product_name for s in self.shortages]


class StockShortfallError(_ShortageError):
    """Raised at checkout when requested quantities exceed current stock. No order is created."""


class InsufficientStockError(_ShortageError):
    """Raised at confirmation when stock drifted below what the order requires."""
    headline = "No se puede confirmar el pedido, stock insuficiente para"


class InvalidTransitionError(BusinessLogicError):
    """Raised when an order status change is not allowed from the current status."""
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        message = f"No se puede pasar un pedido de {current.value} a {requested.value}"
        super().__init__(
            message,
            status_code=409,
            payload={'estado_actual': current.value, 'estado_solicitado': requested.value}
        )


class PersistenceError(TiendaError):
    """Raised when the storage layer fails. Callers should retry."""
    def __init__(self, message="No se pudo guardar la información. Intentá de nuevo.", original: Optional[Exception] = None):
        super().__init__(message, 503)
        self.original = original


class UnauthorizedError(TiendaError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)
