"""
Unit tests for domain exceptions.
"""
from tienda.exceptions import (
    StockShortage, StockShortfallError, InsufficientStockError,
    InvalidTransitionError, PersistenceError, NotFoundError
)
from tienda.models import OrderStatus


def test_shortfall_lists_every_product():
    error = StockShortfallError([
        StockShortage(1, 'Taza', 1, 2),
        StockShortage(2, 'Gorra', 0, 5),
    ])

    assert error.status_code == 409
    assert error.product_names == ['Taza', 'Gorra']
    assert 'Taza (disponible: 1, solicitado: 2)' in error.message
    assert 'Gorra (disponible: 0, solicitado: 5)' in error.message

    data = error.to_dict()
    assert data['status'] == 'error'
    assert data['faltantes'][1] == {
        'producto_id': 2, 'producto': 'Gorra', 'disponible': 0, 'solicitado': 5
    }


def test_insufficient_stock_is_distinct_from_shortfall():
    error = InsufficientStockError([StockShortage(1, 'Taza', 1, 2)])
    assert not isinstance(error, StockShortfallError)
    assert error.message.startswith('No se puede confirmar el pedido')


def test_invalid_transition_payload():
    error = InvalidTransitionError(OrderStatus.ENTREGADO, OrderStatus.CANCELADO)
    assert error.status_code == 409
    assert error.to_dict()['estado_actual'] == 'ENTREGADO'
    assert error.to_dict()['estado_solicitado'] == 'CANCELADO'


def test_persistence_error_keeps_original():
    original = RuntimeError('connection reset')
    error = PersistenceError(original=original)
    assert error.status_code == 503
    assert error.original is original
    assert 'Intentá de nuevo' in error.message


def test_not_found_defaults():
    assert NotFoundError().status_code == 404
