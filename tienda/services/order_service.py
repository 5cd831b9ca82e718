"""
Order service with transactional logic.
Handles order creation from a cart, order status changes and order queries.
"""
import logging
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from tienda.exceptions import (
    BusinessLogicError, NotFoundError, PersistenceError, TiendaError, InvalidTransitionError
)
from tienda.models import Client, Order, OrderLine, OrderStatus, can_transition
from tienda.services.cart_service import CartItem
from tienda.services.notification_service import send_order_notification
from tienda.services.stock_service import validate_stock, deduct_order_stock

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def generate_order_number(today: Optional[datetime] = None) -> str:
    """Human-readable order number: PED-yyyyMMdd-NNNN."""
    today = today or datetime.now()
    return f"PED-{today.strftime('%Y%m%d')}-{random.randint(0, 9999):04d}"


def _unique_order_number(session: Session, attempts: int) -> str:
    """Pick an order number not used yet; the unique index backs this check."""
    for _ in range(attempts):
        number = generate_order_number()
        taken = session.query(Order.id).filter(Order.order_number == number).first()
        if not taken:
            return number
        logger.warning(f"[PEDIDO] Número {number} ya existe, generando otro")
    raise PersistenceError('No se pudo generar un número de pedido. Intentá de nuevo.')


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_order(
    session: Session,
    client: Dict[str, Any],
    items: List[CartItem],
    notes: Optional[str] = None,
    user_id: Optional[str] = None
) -> Order:
    """
    Create Client + Order + OrderLines from cart items in one transaction.

    Stock is validated first under product row locks; any shortfall aborts
    before a single row is written. The notification is sent after commit
    and its outcome is ignored.
    """
    name = (client.get('nombre') or '').strip()
    phone = (client.get('telefono') or '').strip()
    email = (client.get('email') or '').strip() or None
    if not name or not phone:
        raise BusinessLogicError('Nombre y teléfono son obligatorios')

    try:
        # 1. Validate stock (locks product rows until commit)
        products = validate_stock(session, items)

        # 2. Order number
        order_number = _unique_order_number(
            session, current_app.config.get('ORDER_NUMBER_ATTEMPTS', 5)
        )

        # 3. Client
        client_row = Client(name=name, phone=phone, email=email)
        session.add(client_row)
        session.flush()

        # 4. Totals
        subtotal = sum((item.subtotal for item in items), Decimal('0.00')).quantize(CENT)
        total = subtotal

        # 5. Order header
        order = Order(
            order_number=order_number,
            client_id=client_row.id,
            user_id=user_id,
            status=OrderStatus.PENDIENTE_CONTACTO,
            subtotal=subtotal,
            total=total,
            notes=notes or None
        )
        session.add(order)
        session.flush()

        # 6. Lines: unit price is the product's current price
        for item in items:
            session.add(OrderLine(
                order_id=order.id,
                product_id=item.product_id,
                variant_id=item.variant_id,
                size_code=item.size_code,
                quantity=item.quantity,
                unit_price=products[item.product_id].price,
                subtotal=item.subtotal
            ))

        session.commit()

    except TiendaError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[PEDIDO] Error al crear pedido: {e}")
        raise PersistenceError(original=e) from e

    logger.info(f"[PEDIDO] Pedido {order.order_number} creado (id={order.id}, total={order.total})")

    # 7. Best-effort notification
    send_order_notification(order, items)

    return order


def transition_order(session: Session, order_id: int, new_status: Union[OrderStatus, str]) -> Order:
    """
    Move an order to `new_status` following ORDER_TRANSITIONS.

    Entering CONFIRMADO deducts stock in the same transaction as the status
    change; if deduction fails the order keeps its status. Requesting the
    current status only refreshes `updated_at`, so repeated confirmations
    never deduct twice.
    """
    status = parse_status(new_status)

    try:
        order = (session.query(Order)
                 .filter(Order.id == order_id)
                 .with_for_update()
                 .populate_existing()
                 .first())
        if not order:
            raise NotFoundError('Pedido no encontrado')

        current = order.status
        if status != current:
            if not can_transition(current, status):
                logger.warning(
                    f"[PEDIDO] Transición rechazada {order.order_number}: {current.value} -> {status.value}"
                )
                raise InvalidTransitionError(current, status)

            if status == OrderStatus.CONFIRMADO:
                deduct_order_stock(session, order)

            order.status = status
        order.updated_at = _now()
        session.commit()

    except TiendaError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"[PEDIDO] Error al actualizar estado del pedido {order_id}: {e}")
        raise PersistenceError(original=e) from e

    logger.info(f"[PEDIDO] Pedido {order.order_number}: {current.value} -> {status.value}")
    return order


def parse_status(value: Union[OrderStatus, str]) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus((value or '').strip().upper())
    except ValueError:
        raise BusinessLogicError(f'Estado de pedido inválido: {value}')


# =====================================================
# QUERIES
# =====================================================

def get_order(session: Session, order_id: int) -> Order:
    """Order with client and lines (and each line's product)."""
    order = (session.query(Order)
             .options(joinedload(Order.client),
                      joinedload(Order.lines).joinedload(OrderLine.product))
             .filter(Order.id == order_id)
             .first())
    if not order:
        raise NotFoundError('Pedido no encontrado')
    return order


def list_orders(session: Session, status: Optional[Union[OrderStatus, str]] = None, limit: Optional[int] = None) -> List[Order]:
    """Orders newest first, optionally filtered by status."""
    query = (session.query(Order)
             .options(joinedload(Order.client))
             .order_by(Order.created_at.desc(), Order.id.desc()))
    if status:
        query = query.filter(Order.status == parse_status(status))
    if limit:
        query = query.limit(limit)
    return query.all()


def get_order_stats(session: Session) -> Dict[str, Any]:
    """Order counts per status and total sales (cancelled orders excluded)."""
    counts = dict(
        session.query(Order.status, func.count(Order.id))
        .group_by(Order.status)
        .all()
    )
    total_sales = (session.query(func.coalesce(func.sum(Order.total), 0))
                   .filter(Order.status != OrderStatus.CANCELADO)
                   .scalar())

    return {
        'total_pedidos': sum(counts.values()),
        'pendientes': counts.get(OrderStatus.PENDIENTE_CONTACTO, 0),
        'confirmados': counts.get(OrderStatus.CONFIRMADO, 0),
        'en_preparacion': counts.get(OrderStatus.EN_PREPARACION, 0),
        'listos_entrega': counts.get(OrderStatus.LISTO_ENTREGA, 0),
        'entregados': counts.get(OrderStatus.ENTREGADO, 0),
        'cancelados': counts.get(OrderStatus.CANCELADO, 0),
        'total_ventas': Decimal(str(total_sales)).quantize(CENT),
    }
