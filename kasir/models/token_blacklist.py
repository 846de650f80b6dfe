"""
Token blacklist model for handling token revocation.

Refresh tokens are single-use: the presented token is blacklisted when a new
pair is issued. Access tokens land here on logout.
"""
from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.sql import func

from kasir.db.base import Base


class TokenBlacklist(Base):
    """Revoked JWTs, stored as SHA-256 hashes until they expire."""
    __tablename__ = "token_blacklist"

    token_hash = Column(String(64), primary_key=True)
    blacklisted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Expired rows can be deleted; the token is rejected by its own exp claim anyway
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_token_blacklist_expires', 'expires_at'),
    )
