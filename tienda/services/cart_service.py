"""
Cart service - client-held shopping cart.

The cart is a pure in-memory aggregate; after every mutation a full
snapshot is written to a CartStore (Flask session or Redis). A failed
write never undoes the mutation: the cart is flagged `dirty` and the
caller can `sync()` again.
"""
import json
import logging
import uuid
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Any, Dict, List, Optional

import redis
from flask import current_app, session

from tienda.exceptions import BusinessLogicError

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


@dataclass
class CartItem:
    """One requested purchase line, unique per (product, variant)."""
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    variant_id: Optional[int] = None
    size_code: Optional[str] = None

    @property
    def key(self):
        return (self.product_id, self.variant_id)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['unit_price'] = str(self.unit_price)
        data['subtotal'] = str(self.subtotal)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartItem':
        return cls(
            product_id=int(data['product_id']),
            product_name=data['product_name'],
            quantity=int(data['quantity']),
            unit_price=Decimal(str(data['unit_price'])),
            subtotal=Decimal(str(data['subtotal'])),
            variant_id=int(data['variant_id']) if data.get('variant_id') is not None else None,
            size_code=data.get('size_code'),
        )


def _line_subtotal(quantity: int, unit_price: Decimal) -> Decimal:
    return (Decimal(quantity) * unit_price).quantize(CENT)


# =====================================================
# STORES
# =====================================================

class CartStore:
    """Durable key-value storage for one cart snapshot."""

    def load(self) -> List[CartItem]:
        raise NotImplementedError

    def save(self, items: List[CartItem]) -> None:
        raise NotImplementedError


class MemoryCartStore(CartStore):
    """Keeps the last snapshot in memory. Used by scripts and tests."""

    def __init__(self, items: Optional[List[CartItem]] = None):
        self.snapshot = [i.to_dict() for i in (items or [])]

    def load(self) -> List[CartItem]:
        return [CartItem.from_dict(d) for d in self.snapshot]

    def save(self, items: List[CartItem]) -> None:
        self.snapshot = [i.to_dict() for i in items]


class SessionCartStore(CartStore):
    """Cart snapshot stored in the signed Flask session cookie."""

    def __init__(self, key: str = 'carrito'):
        self.key = key

    def load(self) -> List[CartItem]:
        return [CartItem.from_dict(d) for d in session.get(self.key, [])]

    def save(self, items: List[CartItem]) -> None:
        session[self.key] = [i.to_dict() for i in items]
        session.modified = True


class RedisCartStore(CartStore):
    """Cart snapshot stored as one JSON document per cart id, with TTL."""

    def __init__(self, client: redis.Redis, key: str, ttl: int):
        self.client = client
        self.key = key
        self.ttl = ttl

    def load(self) -> List[CartItem]:
        raw = self.client.get(self.key)
        if raw is None:
            return []
        return [CartItem.from_dict(d) for d in json.loads(raw)]

    def save(self, items: List[CartItem]) -> None:
        payload = json.dumps([i.to_dict() for i in items])
        self.client.setex(self.key, self.ttl, payload)


def _get_redis_client() -> redis.Redis:
    client = current_app.extensions.get('cart_redis')
    if client is None:
        client = redis.from_url(
            current_app.config['REDIS_URL'],
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=3,
            retry_on_timeout=True
        )
        current_app.extensions['cart_redis'] = client
    return client


def get_cart_store() -> CartStore:
    """Build the store configured by CART_BACKEND for the current request."""
    backend = current_app.config.get('CART_BACKEND', 'session')
    if backend == 'redis':
        cart_id = session.get('cart_id')
        if not cart_id:
            cart_id = uuid.uuid4().hex
            session['cart_id'] = cart_id
        key = f"{current_app.config.get('CART_KEY_PREFIX', 'tienda:carrito')}:{cart_id}"
        return RedisCartStore(_get_redis_client(), key, current_app.config.get('CART_TTL', 604800))
    return SessionCartStore()


# =====================================================
# AGGREGATE
# =====================================================

class Cart:
    """In-memory cart with write-through persistence."""

    def __init__(self, store: Optional[CartStore] = None, items: Optional[List[CartItem]] = None):
        self.store = store
        self._items: List[CartItem] = list(items or [])
        self.dirty = False

    @classmethod
    def load(cls, store: CartStore) -> 'Cart':
        """Load a cart from its store. Unreadable snapshots yield an empty cart."""
        try:
            items = store.load()
        except Exception as e:
            logger.error(f"[CART] Error al cargar carrito: {e}")
            items = []
        return cls(store, items)

    # -- reads --------------------------------------------------------

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def total_quantity(self) -> int:
        return sum(i.quantity for i in self._items)

    @property
    def subtotal(self) -> Decimal:
        return sum((i.subtotal for i in self._items), Decimal('0.00')).quantize(CENT)

    def is_empty(self) -> bool:
        return not self._items

    def contains(self, product_id: int, variant_id: Optional[int] = None) -> bool:
        return self._find(product_id, variant_id) is not None

    def quantity_of(self, product_id: int, variant_id: Optional[int] = None) -> int:
        item = self._find(product_id, variant_id)
        return item.quantity if item else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'items': [i.to_dict() for i in self._items],
            'cantidad_total': self.total_quantity,
            'subtotal': str(self.subtotal),
            'sincronizado': not self.dirty,
        }

    # -- mutations ----------------------------------------------------

    def add_item(self, product, quantity: int = 1, variant=None, unit_price: Optional[Decimal] = None) -> bool:
        """
        Add `quantity` of a product (optionally a variant) to the cart.

        An existing line for the same (product, variant) keeps its stored
        price; only new lines take `unit_price`, the variant override or the
        product price, in that order.
        """
        if quantity < 1:
            raise BusinessLogicError('La cantidad debe ser mayor a 0')

        variant_id = variant.id if variant is not None else None
        item = self._find(product.id, variant_id)
        if item:
            item.quantity += quantity
            item.subtotal = _line_subtotal(item.quantity, item.unit_price)
        else:
            if unit_price is not None:
                price = Decimal(str(unit_price))
            elif variant is not None:
                price = variant.effective_price
            else:
                price = Decimal(str(product.price))
            self._items.append(CartItem(
                product_id=product.id,
                product_name=product.name,
                quantity=quantity,
                unit_price=price,
                subtotal=_line_subtotal(quantity, price),
                variant_id=variant_id,
                size_code=variant.code if variant is not None else None,
            ))
        return self._persist()

    def update_quantity(self, product_id: int, quantity: int, variant_id: Optional[int] = None) -> bool:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            return self.remove_item(product_id, variant_id)

        item = self._find(product_id, variant_id)
        if item:
            item.quantity = quantity
            item.subtotal = _line_subtotal(quantity, item.unit_price)
        return self._persist()

    def remove_item(self, product_id: int, variant_id: Optional[int] = None) -> bool:
        self._items = [i for i in self._items if i.key != (product_id, variant_id)]
        return self._persist()

    def clear(self) -> bool:
        self._items = []
        return self._persist()

    def sync(self) -> bool:
        """Retry writing the current snapshot."""
        return self._persist()

    # -- helpers ------------------------------------------------------

    def _find(self, product_id: int, variant_id: Optional[int]) -> Optional[CartItem]:
        for item in self._items:
            if item.key == (product_id, variant_id):
                return item
        return None

    def _persist(self) -> bool:
        if self.store is None:
            return True
        try:
            self.store.save(self._items)
        except Exception as e:
            logger.error(f"[CART] Error al guardar carrito: {e}")
            self.dirty = True
            return False
        self.dirty = False
        return True


def get_cart() -> Cart:
    """Cart for the current request, loaded from the configured store."""
    return Cart.load(get_cart_store())
