import enum

from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship

from kasir.db.base import Base


class OutletStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Outlet(Base):
    __tablename__ = "outlets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default=OutletStatus.ACTIVE.value)
    open_at = Column(String(5))  # HH:MM
    closed_at = Column(String(5))  # HH:MM
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user_links = relationship("UserOutlet", back_populates="outlet", cascade="all, delete-orphan")
    products = relationship("Product", back_populates="outlet")

    @property
    def is_active(self) -> bool:
        return self.status == OutletStatus.ACTIVE.value
