"""Cart blueprint - storefront cart held in the client session."""
from flask import Blueprint, jsonify, current_app

from tienda.blueprints import get_payload, parse_int
from tienda.database import get_session
from tienda.exceptions import BusinessLogicError, NotFoundError
from tienda.models import Product, ProductVariant
from tienda.services.cart_service import get_cart

cart_bp = Blueprint('cart', __name__, url_prefix='/carrito')


def _optional_variant_id(payload):
    raw = payload.get('variant_id')
    return parse_int(raw, 'variant_id') if raw not in (None, '') else None


@cart_bp.route('/', methods=['GET'])
def show_cart():
    """Cart lines and totals."""
    return jsonify(get_cart().to_dict())


@cart_bp.route('/agregar', methods=['POST'])
def add_to_cart():
    """Add a product (and optional variant) to the cart."""
    db_session = get_session()
    payload = get_payload()

    product_id = parse_int(payload.get('product_id'), 'product_id')
    qty = parse_int(payload.get('quantity'), 'quantity', default=1)
    variant_id = _optional_variant_id(payload)

    product = db_session.query(Product).filter(Product.id == product_id).first()
    if not product or not product.active:
        raise NotFoundError('Producto no encontrado')

    variant = None
    if variant_id is not None:
        variant = db_session.query(ProductVariant).filter(
            ProductVariant.id == variant_id,
            ProductVariant.product_id == product.id,
            ProductVariant.active == True  # noqa: E712
        ).first()
        if not variant:
            raise NotFoundError('El talle elegido no está disponible')
    elif product.has_variants:
        raise BusinessLogicError(f'Elegí un talle para "{product.name}"')

    cart = get_cart()
    available = variant.stock if variant else product.stock
    if cart.quantity_of(product.id, variant_id) + qty > available:
        raise BusinessLogicError(f'Stock insuficiente para "{product.name}". Disponible: {available}')

    cart.add_item(product, qty, variant)
    current_app.logger.info(
        f"[CART] add: product_id={product.id}, variant_id={variant_id}, qty={qty}, "
        f"lines={len(cart.items)}"
    )
    return jsonify(cart.to_dict())


@cart_bp.route('/actualizar', methods=['POST'])
def update_cart():
    """Set the quantity of a line; zero removes it."""
    payload = get_payload()
    product_id = parse_int(payload.get('product_id'), 'product_id')
    qty = parse_int(payload.get('quantity'), 'quantity')

    cart = get_cart()
    cart.update_quantity(product_id, qty, _optional_variant_id(payload))
    return jsonify(cart.to_dict())


@cart_bp.route('/quitar', methods=['POST'])
def remove_from_cart():
    payload = get_payload()
    product_id = parse_int(payload.get('product_id'), 'product_id')

    cart = get_cart()
    cart.remove_item(product_id, _optional_variant_id(payload))
    return jsonify(cart.to_dict())


@cart_bp.route('/vaciar', methods=['POST'])
def clear_cart():
    cart = get_cart()
    cart.clear()
    return jsonify(cart.to_dict())
