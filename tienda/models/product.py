"""Product model."""
from decimal import Decimal

from sqlalchemy import Column, String, Text, Boolean, Integer, Numeric, DateTime, true
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tienda.database import Base, IdType


class Product(Base):
    """Product (producto del catálogo)."""
    
    __tablename__ = 'productos'
    
    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column('nombre', String(200), nullable=False)
    description = Column('descripcion', Text, nullable=True)
    price = Column('precio', Numeric(10, 2), nullable=False)
    # Aggregate stock: sum of active variant stocks when the product has variants
    stock = Column(Integer, nullable=False, default=0, server_default='0')
    active = Column('activo', Boolean, nullable=False, default=True, server_default=true())
    category = Column('categoria', String(100), nullable=True)
    subcategory = Column('subcategoria', String(100), nullable=True)
    sku = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    variants = relationship('ProductVariant', back_populates='product', cascade='all, delete-orphan')
    
    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock})>"
    
    @property
    def has_variants(self) -> bool:
        return any(v.active for v in self.variants)
    
    @property
    def unit_price(self) -> Decimal:
        return Decimal(str(self.price))
