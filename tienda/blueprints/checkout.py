"""Checkout blueprint - turns the session cart into an order."""
from flask import Blueprint, jsonify, g

from tienda.blueprints import get_payload
from tienda.database import get_session
from tienda.exceptions import BusinessLogicError
from tienda.services.cart_service import get_cart
from tienda.services.order_service import create_order

checkout_bp = Blueprint('checkout', __name__)


@checkout_bp.route('/checkout', methods=['POST'])
def checkout():
    """Create the order and empty the cart."""
    payload = get_payload()
    cart = get_cart()

    if cart.is_empty():
        raise BusinessLogicError('El carrito está vacío. Agregá productos antes de confirmar.')

    order = create_order(
        get_session(),
        client={
            'nombre': payload.get('nombre'),
            'telefono': payload.get('telefono'),
            'email': payload.get('email'),
        },
        items=cart.items,
        notes=payload.get('notas'),
        user_id=g.get('user_id')
    )

    cart.clear()
    return jsonify({'status': 'ok', 'pedido': order.to_dict()}), 201
