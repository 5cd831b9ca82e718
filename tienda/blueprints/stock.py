"""Admin stock blueprint - manual stock edits."""
from flask import Blueprint, jsonify

from tienda.blueprints import get_payload, parse_int
from tienda.database import get_session
from tienda.middleware import admin_required
from tienda.services.stock_service import set_product_stock, set_variant_stock

stock_bp = Blueprint('stock', __name__, url_prefix='/admin/stock')


@stock_bp.route('/productos/<int:product_id>', methods=['POST'])
@admin_required
def update_product_stock(product_id):
    payload = get_payload()
    product = set_product_stock(get_session(), product_id, parse_int(payload.get('stock'), 'stock'))
    return jsonify({'producto_id': product.id, 'stock': product.stock})


@stock_bp.route('/talles/<int:variant_id>', methods=['POST'])
@admin_required
def update_variant_stock(variant_id):
    """Variant stock/active flag; the product total is recomputed."""
    payload = get_payload()
    stock = payload.get('stock')
    active = payload.get('activo')
    if isinstance(active, str):
        active = active.lower() in ('1', 'true', 'on', 'si')
    variant = set_variant_stock(
        get_session(),
        variant_id,
        stock=parse_int(stock, 'stock') if stock not in (None, '') else None,
        active=active
    )
    return jsonify({
        'producto_talle_id': variant.id,
        'stock': variant.stock,
        'activo': variant.active,
        'stock_producto': variant.product.stock,
    })
