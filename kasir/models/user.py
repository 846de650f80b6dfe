"""
Identity models: auth accounts, user profiles with roles, and outlet membership.
"""
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from kasir.db.base import Base


class Role(str, enum.Enum):
    """Closed set of principal roles."""
    OWNER = "owner"
    MANAGER = "manager"
    STAFF = "staff"


class AuthAccount(Base):
    """Login credentials, created by signup and referenced by a user profile."""
    __tablename__ = "auth_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="account", uselist=False)


class User(Base):
    """Staff profile carrying the role used for authorization."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("auth_accounts.id", ondelete="CASCADE"), nullable=False, unique=True)
    fullname = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    address = Column(String(500))
    phone = Column(String(50))
    role = Column(String(20), nullable=False, default=Role.STAFF.value)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    account = relationship("AuthAccount", back_populates="user")
    outlet_links = relationship("UserOutlet", back_populates="user", cascade="all, delete-orphan")

    @property
    def role_enum(self) -> Role:
        return Role(self.role)


class UserOutlet(Base):
    """Membership of a manager or staff member in exactly one outlet."""
    __tablename__ = "user_outlet"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    outlet_id = Column(Integer, ForeignKey("outlets.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="outlet_links")
    outlet = relationship("Outlet", back_populates="user_links")

    __table_args__ = (
        UniqueConstraint("user_id", "outlet_id", name="uq_user_outlet_user_outlet"),
    )
