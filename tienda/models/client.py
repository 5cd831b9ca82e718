"""Client model."""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from tienda.database import Base, IdType


class Client(Base):
    """Client (cliente). A fresh row is stored with every order."""
    
    __tablename__ = 'clientes'
    
    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column('nombre', String(200), nullable=False)
    phone = Column('telefono', String(50), nullable=False)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    
    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
    
    def to_dict(self):
        return {
            'id': self.id,
            'nombre': self.name,
            'telefono': self.phone,
            'email': self.email,
        }
