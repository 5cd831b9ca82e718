"""
Integration tests for order status changes and stock deduction.
"""
import pytest

from tienda.exceptions import (
    BusinessLogicError, InsufficientStockError, InvalidTransitionError, NotFoundError
)
from tienda.models import Order, OrderStatus, Product
from tienda.services.order_service import create_order, transition_order


@pytest.fixture
def place_order(session, valid_client):
    """Factory: create an order from (product, qty[, variant]) tuples."""
    from tienda.services.cart_service import Cart

    def _place(*lines):
        cart = Cart()
        for line in lines:
            cart.add_item(*line)
        return create_order(session, valid_client, cart.items)
    return _place


def _stock(session, product_id):
    return session.query(Product.stock).filter(Product.id == product_id).scalar()


class TestConfirmation:
    """Entering CONFIRMADO deducts stock exactly once."""

    def test_confirm_deducts_requested_quantities(self, session, place_order, product_a, product_c):
        order = place_order((product_a, 2), (product_c, 3))

        confirmed = transition_order(session, order.id, OrderStatus.CONFIRMADO)

        assert confirmed.status == OrderStatus.CONFIRMADO
        assert _stock(session, product_a.id) == 8
        assert _stock(session, product_c.id) == 0

    def test_repeated_confirmation_is_idempotent(self, session, place_order, product_a):
        order = place_order((product_a, 2))
        first = transition_order(session, order.id, 'CONFIRMADO')
        first_updated = first.updated_at

        again = transition_order(session, order.id, 'CONFIRMADO')

        assert again.status == OrderStatus.CONFIRMADO
        assert again.updated_at != first_updated
        assert _stock(session, product_a.id) == 8

    def test_drifted_stock_aborts_confirmation(self, session, place_order, product_a, product_c):
        order = place_order((product_a, 2), (product_c, 2))
        product_c.stock = 1
        session.commit()

        with pytest.raises(InsufficientStockError) as exc_info:
            transition_order(session, order.id, OrderStatus.CONFIRMADO)

        assert exc_info.value.product_names == ['Gorra']
        assert exc_info.value.shortages[0].available == 1
        assert exc_info.value.shortages[0].requested == 2

        session.refresh(order)
        assert order.status == OrderStatus.PENDIENTE_CONTACTO
        # Nothing deducted, not even the line that had enough stock
        assert _stock(session, product_a.id) == 10
        assert _stock(session, product_c.id) == 1

    def test_lost_race_on_conditional_decrement_rolls_back_every_line(
        self, session, place_order, product_a, product_c, monkeypatch
    ):
        product_a_id, product_c_id = product_a.id, product_c.id
        order = place_order((product_a, 2), (product_c, 2))
        product_c.stock = 1
        session.commit()
        # Pre-check sees enough stock, as when another confirmation commits
        # between the check and the decrement
        monkeypatch.setattr('tienda.services.stock_service.find_shortages', lambda products, requested: [])

        with pytest.raises(InsufficientStockError) as exc_info:
            transition_order(session, order.id, OrderStatus.CONFIRMADO)

        assert exc_info.value.product_names == ['Gorra']
        session.refresh(order)
        assert order.status == OrderStatus.PENDIENTE_CONTACTO
        assert _stock(session, product_a_id) == 10
        assert _stock(session, product_c_id) == 1

    def test_unreserved_checkouts_are_settled_at_confirmation(self, session, place_order, product_c):
        """
        Checkout serializes on the product row lock but reserves nothing, so
        both orders are accepted; the first confirmation takes the units and
        the second is rejected.
        """
        first = place_order((product_c, 2))
        second = place_order((product_c, 2))

        transition_order(session, first.id, OrderStatus.CONFIRMADO)
        with pytest.raises(InsufficientStockError):
            transition_order(session, second.id, OrderStatus.CONFIRMADO)

        assert _stock(session, product_c.id) == 1
        session.refresh(second)
        assert second.status == OrderStatus.PENDIENTE_CONTACTO

    def test_variant_order_deducts_aggregate_counter_only(self, session, place_order, product_b, variant_m):
        order = place_order((product_b, 2, variant_m))

        transition_order(session, order.id, OrderStatus.CONFIRMADO)

        session.refresh(variant_m)
        assert _stock(session, product_b.id) == 6
        assert variant_m.stock == 5


class TestTransitionTable:
    """Status only moves forward, with cancellation as the escape."""

    def test_full_forward_path(self, session, place_order, product_a):
        order = place_order((product_a, 1))
        for status in ('CONFIRMADO', 'EN_PREPARACION', 'LISTO_ENTREGA', 'ENTREGADO'):
            order = transition_order(session, order.id, status)
        assert order.status == OrderStatus.ENTREGADO
        assert _stock(session, product_a.id) == 9

    def test_delivered_order_cannot_be_cancelled(self, session, place_order, product_a):
        order = place_order((product_a, 1))
        for status in ('CONFIRMADO', 'EN_PREPARACION', 'LISTO_ENTREGA', 'ENTREGADO'):
            transition_order(session, order.id, status)

        with pytest.raises(InvalidTransitionError):
            transition_order(session, order.id, OrderStatus.CANCELADO)

        session.refresh(order)
        assert order.status == OrderStatus.ENTREGADO

    def test_cancel_pending_order_keeps_stock(self, session, place_order, product_a):
        order = place_order((product_a, 3))

        cancelled = transition_order(session, order.id, OrderStatus.CANCELADO)

        assert cancelled.status == OrderStatus.CANCELADO
        assert _stock(session, product_a.id) == 10

    def test_cancelled_order_cannot_be_confirmed(self, session, place_order, product_a):
        order = place_order((product_a, 3))
        transition_order(session, order.id, OrderStatus.CANCELADO)

        with pytest.raises(InvalidTransitionError):
            transition_order(session, order.id, OrderStatus.CONFIRMADO)
        assert _stock(session, product_a.id) == 10

    def test_skipping_confirmation_is_rejected(self, session, place_order, product_a):
        order = place_order((product_a, 1))

        with pytest.raises(InvalidTransitionError):
            transition_order(session, order.id, OrderStatus.EN_PREPARACION)

        session.refresh(order)
        assert order.status == OrderStatus.PENDIENTE_CONTACTO

    def test_backward_move_is_rejected(self, session, place_order, product_a):
        order = place_order((product_a, 1))
        transition_order(session, order.id, OrderStatus.CONFIRMADO)
        transition_order(session, order.id, OrderStatus.EN_PREPARACION)

        with pytest.raises(InvalidTransitionError):
            transition_order(session, order.id, OrderStatus.CONFIRMADO)
        assert _stock(session, product_a.id) == 9

    def test_unknown_status(self, session, place_order, product_a):
        order = place_order((product_a, 1))
        with pytest.raises(BusinessLogicError):
            transition_order(session, order.id, 'ENVIADO')

    def test_unknown_order(self, session):
        with pytest.raises(NotFoundError):
            transition_order(session, 999, OrderStatus.CONFIRMADO)
        assert session.query(Order).count() == 0
