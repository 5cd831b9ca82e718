"""Models package - exports all SQLAlchemy models."""
# Catalogue
from tienda.models.product import Product
from tienda.models.size import Size
from tienda.models.product_variant import ProductVariant

# Orders
from tienda.models.client import Client
from tienda.models.order import Order, OrderStatus, ORDER_TRANSITIONS, can_transition, is_terminal
from tienda.models.order_line import OrderLine

__all__ = [
    'Product', 'Size', 'ProductVariant',
    'Client', 'Order', 'OrderStatus', 'ORDER_TRANSITIONS', 'can_transition', 'is_terminal',
    'OrderLine',
]
