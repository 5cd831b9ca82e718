"""Product variant model (producto + talle)."""
from decimal import Decimal

from sqlalchemy import Column, Integer, Numeric, Boolean, ForeignKey, UniqueConstraint, true
from sqlalchemy.orm import relationship
from tienda.database import Base, IdType


class ProductVariant(Base):
    """Per-size stock and optional price override of a product."""
    
    __tablename__ = 'productos_talles'
    __table_args__ = (
        UniqueConstraint('producto_id', 'talle_id', name='uq_producto_talle'),
    )
    
    id = Column(IdType, primary_key=True, autoincrement=True)
    product_id = Column('producto_id', IdType, ForeignKey('productos.id'), nullable=False)
    size_id = Column('talle_id', IdType, ForeignKey('talles.id'), nullable=False)
    stock = Column(Integer, nullable=False, default=0, server_default='0')
    price = Column('precio', Numeric(10, 2), nullable=True)  # None -> product price
    active = Column('activo', Boolean, nullable=False, default=True, server_default=true())
    
    # Relationships
    product = relationship('Product', back_populates='variants')
    size = relationship('Size')
    
    def __repr__(self):
        return f"<ProductVariant(id={self.id}, product_id={self.product_id}, size_id={self.size_id}, stock={self.stock})>"
    
    @property
    def code(self):
        return self.size.code if self.size else None
    
    @property
    def effective_price(self) -> Decimal:
        """Variant price override, or the product's price when absent."""
        if self.price is not None:
            return Decimal(str(self.price))
        return self.product.unit_price
