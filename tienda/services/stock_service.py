"""
Stock service - the StockLevel store.

Checkout validation and confirmation-time deduction both lock the
`productos` rows they touch (SELECT ... FOR UPDATE, ascending id order)
so concurrent orders on the same product are serialized. Deduction is
additionally written as a conditional decrement (`stock >= qty`), so a
backend without row locks still cannot drive stock negative.

Nothing here commits: callers own the transaction.
"""
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tienda.exceptions import (
    BusinessLogicError, NotFoundError, PersistenceError, TiendaError,
    StockShortage, StockShortfallError, InsufficientStockError
)
from tienda.models import Product, ProductVariant, Order, OrderLine

logger = logging.getLogger(__name__)


def lock_products(session: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """Lock product rows FOR UPDATE and return them with fresh stock values."""
    ids = sorted(set(product_ids))
    if not ids:
        return {}

    products = (session.query(Product)
                .filter(Product.id.in_(ids))
                .order_by(Product.id)
                .with_for_update()
                .populate_existing()
                .all())
    return {p.id: p for p in products}


def requested_by_product(lines) -> Dict[int, int]:
    """
    Total requested quantity per product, in first-seen order.

    Lines of the same product with different variants draw from the same
    aggregate counter, so they are checked together.
    """
    totals = OrderedDict()
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + int(line.quantity)
    return totals


def find_shortages(products: Dict[int, Product], requested: Dict[int, int]) -> List[StockShortage]:
    shortages = []
    for product_id, qty in requested.items():
        product = products[product_id]
        if product.stock < qty:
            shortages.append(StockShortage(
                product_id=product.id,
                product_name=product.name,
                available=product.stock,
                requested=qty
            ))
    return shortages


def validate_stock(session: Session, items) -> Dict[int, Product]:
    """
    Check requested cart quantities against current stock (read-only).

    Raises StockShortfallError with every offending product. Returns the
    locked products keyed by id; the locks last until the caller's
    transaction ends.
    """
    if not items:
        raise BusinessLogicError('El carrito está vacío')

    for item in items:
        if int(item.quantity) < 1:
            raise BusinessLogicError('La cantidad debe ser mayor a 0')

    requested = requested_by_product(items)
    products = lock_products(session, requested.keys())

    for item in items:
        product = products.get(item.product_id)
        if product is None:
            raise NotFoundError(f'Producto {item.product_name} no encontrado')
        if not product.active:
            raise BusinessLogicError(f'El producto "{product.name}" no está activo')

    shortages = find_shortages(products, requested)
    if shortages:
        logger.info(f"[STOCK] Faltante al validar carrito: {', '.join(str(s) for s in shortages)}")
        raise StockShortfallError(shortages)

    return products


def deduct_order_stock(session: Session, order: Order) -> None:
    """
    Deduct every line of `order` from product stock, all or nothing.

    All lines are checked under lock before any write. Only the aggregate
    product counter is decremented; variant rows are left as they are.
    """
    lines = session.query(OrderLine).filter(OrderLine.order_id == order.id).all()
    if not lines:
        raise BusinessLogicError('No se encontraron detalles del pedido')

    requested = requested_by_product(lines)
    products = lock_products(session, requested.keys())

    missing = [pid for pid in requested if pid not in products]
    if missing:
        raise NotFoundError(f'Producto con ID {missing[0]} no encontrado')

    shortages = find_shortages(products, requested)
    if shortages:
        raise InsufficientStockError(shortages)

    for product_id, qty in requested.items():
        product = products[product_id]
        previous = product.stock
        updated = (session.query(Product)
                   .filter(Product.id == product_id, Product.stock >= qty)
                   .update({Product.stock: Product.stock - qty}, synchronize_session=False))
        if updated != 1:
            # Lost a race on a backend without row locks
            session.expire(product, ['stock'])
            raise InsufficientStockError([StockShortage(product.id, product.name, product.stock, qty)])
        session.expire(product, ['stock'])
        logger.info(
            f"[STOCK] Stock actualizado: {product.name} - "
            f"anterior: {previous}, nuevo: {previous - qty} (pedido {order.order_number})"
        )


def recalculate_product_stock(product: Product) -> int:
    """Set a product's aggregate stock to the sum of its active variants."""
    product.stock = sum(v.stock for v in product.variants if v.active)
    return product.stock


# =====================================================
# ADMINISTRATIVE EDITS
# =====================================================

def set_product_stock(session: Session, product_id: int, stock: int) -> Product:
    """Set the stock of a product without variants."""
    if stock < 0:
        raise BusinessLogicError('El stock debe ser mayor o igual a 0')

    try:
        product = lock_products(session, [product_id]).get(product_id)
        if not product:
            raise NotFoundError('Producto no encontrado')
        if product.has_variants:
            raise BusinessLogicError(
                f'El stock de "{product.name}" se calcula a partir de sus talles'
            )
        product.stock = stock
        session.commit()
    except TiendaError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[STOCK] Error al actualizar stock del producto {product_id}: {e}")
        raise PersistenceError(original=e) from e

    logger.info(f"[STOCK] Stock de {product.name} fijado en {stock}")
    return product


def set_variant_stock(session: Session, variant_id: int, stock: int = None, active: bool = None) -> ProductVariant:
    """
    Update a variant's stock and/or active flag and recompute the product's
    aggregate stock under the product row lock.
    """
    if stock is not None and stock < 0:
        raise BusinessLogicError('El stock debe ser mayor o igual a 0')

    try:
        variant = session.query(ProductVariant).filter(ProductVariant.id == variant_id).first()
        if not variant:
            raise NotFoundError('Talle de producto no encontrado')

        product = lock_products(session, [variant.product_id])[variant.product_id]
        session.refresh(variant)
        if stock is not None:
            variant.stock = stock
        if active is not None:
            variant.active = active
        session.flush()
        recalculate_product_stock(product)
        session.commit()
    except TiendaError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[STOCK] Error al actualizar talle {variant_id}: {e}")
        raise PersistenceError(original=e) from e

    logger.info(f"[STOCK] Talle {variant.code} de {product.name}: stock {variant.stock}, total producto {product.stock}")
    return variant
