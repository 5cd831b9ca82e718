"""Size model (talle)."""
from sqlalchemy import Column, String, Integer, Boolean, true
from tienda.database import Base, IdType


class Size(Base):
    """Size catalogue entry shared by products (S, M, L, 38, 40...)."""
    
    __tablename__ = 'talles'
    
    id = Column(IdType, primary_key=True, autoincrement=True)
    code = Column('codigo', String(20), nullable=False, unique=True)
    name = Column('nombre', String(100), nullable=False)
    sort_order = Column('orden', Integer, nullable=False, default=0, server_default='0')
    active = Column('activo', Boolean, nullable=False, default=True, server_default=true())
    
    def __repr__(self):
        return f"<Size(id={self.id}, code='{self.code}')>"
