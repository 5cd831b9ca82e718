"""
Unit tests for the order status transition table.
"""
import pytest

from tienda.models import OrderStatus, ORDER_TRANSITIONS, can_transition, is_terminal

FORWARD_PATH = [
    OrderStatus.PENDIENTE_CONTACTO,
    OrderStatus.CONFIRMADO,
    OrderStatus.EN_PREPARACION,
    OrderStatus.LISTO_ENTREGA,
    OrderStatus.ENTREGADO,
]


def test_every_status_has_an_entry():
    assert set(ORDER_TRANSITIONS) == set(OrderStatus)


@pytest.mark.parametrize('current,nxt', list(zip(FORWARD_PATH, FORWARD_PATH[1:])))
def test_forward_steps_allowed(current, nxt):
    assert can_transition(current, nxt)


@pytest.mark.parametrize('current', FORWARD_PATH[:-1])
def test_cancel_allowed_from_non_terminal(current):
    assert can_transition(current, OrderStatus.CANCELADO)


@pytest.mark.parametrize('status', [OrderStatus.ENTREGADO, OrderStatus.CANCELADO])
def test_terminal_statuses_have_no_exit(status):
    assert is_terminal(status)
    assert not any(can_transition(status, other) for other in OrderStatus)


def test_backward_move_rejected():
    assert not can_transition(OrderStatus.EN_PREPARACION, OrderStatus.CONFIRMADO)
    assert not can_transition(OrderStatus.CONFIRMADO, OrderStatus.PENDIENTE_CONTACTO)


def test_skipping_confirmation_rejected():
    assert not can_transition(OrderStatus.PENDIENTE_CONTACTO, OrderStatus.EN_PREPARACION)
    assert not can_transition(OrderStatus.PENDIENTE_CONTACTO, OrderStatus.ENTREGADO)
