"""
Integration tests for order listing, detail and statistics.
"""
from decimal import Decimal

import pytest

from tienda.exceptions import NotFoundError
from tienda.models import OrderStatus
from tienda.services.cart_service import Cart
from tienda.services.order_service import (
    create_order, get_order, list_orders, get_order_stats, transition_order
)


@pytest.fixture
def three_orders(session, product_a, valid_client):
    orders = []
    for qty in (1, 2, 3):
        cart = Cart()
        cart.add_item(product_a, qty)
        orders.append(create_order(session, valid_client, cart.items))
    transition_order(session, orders[0].id, OrderStatus.CONFIRMADO)
    transition_order(session, orders[2].id, OrderStatus.CANCELADO)
    return orders


def test_list_orders_newest_first(session, three_orders):
    orders = list_orders(session)
    assert [o.id for o in orders] == [o.id for o in reversed(three_orders)]


def test_list_orders_by_status(session, three_orders):
    confirmed = list_orders(session, status='CONFIRMADO')
    assert [o.id for o in confirmed] == [three_orders[0].id]


def test_list_orders_limit(session, three_orders):
    assert len(list_orders(session, limit=2)) == 2


def test_get_order_includes_client_and_lines(session, three_orders):
    order = get_order(session, three_orders[1].id)
    data = order.to_dict(include_lines=True)

    assert data['cliente']['nombre'] == 'Ana Pérez'
    assert data['detalles'][0]['producto'] == 'Taza sublimada'
    assert data['detalles'][0]['cantidad'] == 2
    assert data['total'] == '200.00'


def test_get_order_unknown(session):
    with pytest.raises(NotFoundError):
        get_order(session, 42)


def test_stats(session, three_orders):
    stats = get_order_stats(session)

    assert stats['total_pedidos'] == 3
    assert stats['pendientes'] == 1
    assert stats['confirmados'] == 1
    assert stats['cancelados'] == 1
    assert stats['en_preparacion'] == 0
    # Cancelled order (300) excluded
    assert stats['total_ventas'] == Decimal('300.00')


def test_stats_empty(session):
    stats = get_order_stats(session)
    assert stats['total_pedidos'] == 0
    assert stats['total_ventas'] == Decimal('0.00')
