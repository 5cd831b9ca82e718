"""Order model and status workflow."""
import enum

from sqlalchemy import Column, String, Text, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tienda.database import Base, IdType


class OrderStatus(str, enum.Enum):
    """Order status (estado del pedido)."""
    PENDIENTE_CONTACTO = 'PENDIENTE_CONTACTO'
    CONFIRMADO = 'CONFIRMADO'
    EN_PREPARACION = 'EN_PREPARACION'
    LISTO_ENTREGA = 'LISTO_ENTREGA'
    ENTREGADO = 'ENTREGADO'
    CANCELADO = 'CANCELADO'


# Forward path plus cancellation from any non-terminal status.
# ENTREGADO and CANCELADO are terminal.
ORDER_TRANSITIONS = {
    OrderStatus.PENDIENTE_CONTACTO: frozenset({OrderStatus.CONFIRMADO, OrderStatus.CANCELADO}),
    OrderStatus.CONFIRMADO: frozenset({OrderStatus.EN_PREPARACION, OrderStatus.CANCELADO}),
    OrderStatus.EN_PREPARACION: frozenset({OrderStatus.LISTO_ENTREGA, OrderStatus.CANCELADO}),
    OrderStatus.LISTO_ENTREGA: frozenset({OrderStatus.ENTREGADO, OrderStatus.CANCELADO}),
    OrderStatus.ENTREGADO: frozenset(),
    OrderStatus.CANCELADO: frozenset(),
}


def is_terminal(status: OrderStatus) -> bool:
    return not ORDER_TRANSITIONS[status]


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """True when `new` is reachable in one step from `current`."""
    return new in ORDER_TRANSITIONS[current]


class Order(Base):
    """Order (pedido) created at checkout."""
    
    __tablename__ = 'pedidos'
    
    id = Column(IdType, primary_key=True, autoincrement=True)
    order_number = Column('numero_pedido', String(32), nullable=False, unique=True, index=True)
    client_id = Column('cliente_id', IdType, ForeignKey('clientes.id'), nullable=False)
    user_id = Column(String(64), nullable=True)  # Resolved by the identity provider
    status = Column(
        'estado',
        Enum(OrderStatus, name='estado_pedido', native_enum=False, length=30),
        nullable=False,
        default=OrderStatus.PENDIENTE_CONTACTO
    )
    subtotal = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)
    notes = Column('notas', Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    # Relationships
    client = relationship('Client')
    lines = relationship('OrderLine', back_populates='order', cascade='all, delete-orphan', order_by='OrderLine.id')
    
    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', status={self.status.value})>"
    
    def to_dict(self, include_lines=False):
        data = {
            'id': self.id,
            'numero_pedido': self.order_number,
            'cliente_id': self.client_id,
            'user_id': self.user_id,
            'estado': self.status.value,
            'subtotal': str(self.subtotal),
            'total': str(self.total),
            'notas': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'cliente': self.client.to_dict() if self.client else None,
        }
        if include_lines:
            data['detalles'] = [line.to_dict() for line in self.lines]
        return data
