"""Order Line model."""
from sqlalchemy import Column, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from tienda.database import Base, IdType


class OrderLine(Base):
    """Order Line (detalle de pedido). Immutable once created."""
    
    __tablename__ = 'detalle_pedido'
    
    id = Column(IdType, primary_key=True, autoincrement=True)
    order_id = Column('pedido_id', IdType, ForeignKey('pedidos.id'), nullable=False, index=True)
    product_id = Column('producto_id', IdType, ForeignKey('productos.id'), nullable=False)
    variant_id = Column('producto_talle_id', IdType, ForeignKey('productos_talles.id'), nullable=True)
    size_code = Column('talle_codigo', String(20), nullable=True)
    quantity = Column('cantidad', Integer, nullable=False)
    unit_price = Column('precio_unitario', Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    
    # Relationships
    order = relationship('Order', back_populates='lines')
    product = relationship('Product')
    
    def __repr__(self):
        return f"<OrderLine(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
    
    def to_dict(self):
        return {
            'id': self.id,
            'producto_id': self.product_id,
            'producto': self.product.name if self.product else None,
            'producto_talle_id': self.variant_id,
            'talle_codigo': self.size_code,
            'cantidad': self.quantity,
            'precio_unitario': str(self.unit_price),
            'subtotal': str(self.subtotal),
        }
