"""Admin orders blueprint - order list, detail and status changes."""
from flask import Blueprint, jsonify, request, current_app

from tienda.blueprints import get_payload, parse_int
from tienda.database import get_session
from tienda.middleware import admin_required
from tienda.services.order_service import get_order, list_orders, get_order_stats, transition_order

orders_bp = Blueprint('orders', __name__, url_prefix='/admin/pedidos')


@orders_bp.route('/', methods=['GET'])
@admin_required
def index():
    """Orders newest first; ?estado= filters, ?limit= caps the list."""
    status = request.args.get('estado') or None
    limit = parse_int(request.args.get('limit'), 'limit', default=0) or None
    orders = list_orders(get_session(), status=status, limit=limit)
    return jsonify({'pedidos': [o.to_dict() for o in orders]})


@orders_bp.route('/estadisticas', methods=['GET'])
@admin_required
def stats():
    data = get_order_stats(get_session())
    data['total_ventas'] = str(data['total_ventas'])
    return jsonify(data)


@orders_bp.route('/<int:order_id>', methods=['GET'])
@admin_required
def detail(order_id):
    order = get_order(get_session(), order_id)
    return jsonify(order.to_dict(include_lines=True))


@orders_bp.route('/<int:order_id>/estado', methods=['POST'])
@admin_required
def change_status(order_id):
    """Move the order to a new status (confirmation deducts stock)."""
    payload = get_payload()
    order = transition_order(get_session(), order_id, payload.get('estado'))
    current_app.logger.info(f"[PEDIDO] Estado de {order.order_number} cambiado a {order.status.value}")
    return jsonify(order.to_dict())
