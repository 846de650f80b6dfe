"""
FastAPI dependencies: bearer authentication, principal context and the
per-request collaborators handed to services.
"""
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from kasir.core.config import Settings, get_settings
from kasir.core.exceptions import ForbiddenError, NotFoundError, UnauthenticatedError
from kasir.core.security import decode_token, is_token_blacklisted
from kasir.db.session import get_db
from kasir.models.outlet import Outlet
from kasir.models.user import AuthAccount, Role, User, UserOutlet
from kasir.services.xendit import XenditClient

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class PrincipalContext:
    """The authenticated user plus the outlets their role scopes them to."""
    user: User
    outlets: List[Outlet] = field(default_factory=list)

    @property
    def role(self) -> Role:
        return self.user.role_enum

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def outlet(self) -> Optional[Outlet]:
        """Single scoped outlet of a manager or staff member; None for owners."""
        if self.role is Role.OWNER:
            return None
        return self.outlets[0] if self.outlets else None

    def require_outlet(self) -> Outlet:
        outlet = self.outlet
        if outlet is None:
            raise NotFoundError("Outlet data not found")
        return outlet


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Authentication required")
    return credentials.credentials


def get_current_account(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> AuthAccount:
    """Resolve a bearer access token to its auth account."""
    payload = decode_token(token)
    if payload is None:
        raise UnauthenticatedError("Invalid or expired token")

    if payload.get("type") != "access":
        raise UnauthenticatedError("Invalid token type")

    if is_token_blacklisted(token, db):
        raise UnauthenticatedError("Token has been revoked")

    try:
        account_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthenticatedError("Invalid token payload")

    account = db.get(AuthAccount, account_id)
    if account is None:
        raise UnauthenticatedError("Account not found")
    return account


def get_principal(
    account: AuthAccount = Depends(get_current_account),
    db: Session = Depends(get_db),
) -> PrincipalContext:
    """
    Attach the user profile and outlet scope to the request.

    Owners are scoped to every outlet. Managers and staff are scoped to the
    single outlet of their membership row; a missing membership is a 404.
    """
    user = db.query(User).filter(User.account_id == account.id).first()
    if user is None:
        raise UnauthenticatedError("User data not found")

    role = user.role_enum
    if role is Role.OWNER:
        outlets = db.query(Outlet).order_by(Outlet.id).all()
    elif role is Role.MANAGER or role is Role.STAFF:
        link = db.query(UserOutlet).filter(UserOutlet.user_id == user.id).first()
        if link is None:
            raise NotFoundError("User is not assigned to any outlet")
        outlet = db.get(Outlet, link.outlet_id)
        if outlet is None:
            raise NotFoundError("Outlet not found")
        outlets = [outlet]
    else:
        raise ValueError(f"Unhandled role: {role}")

    return PrincipalContext(user=user, outlets=outlets)


def require_roles(*roles: Role) -> Callable[..., PrincipalContext]:
    """Build a dependency that only lets the listed roles through."""
    allowed = frozenset(roles)

    def dependency(principal: PrincipalContext = Depends(get_principal)) -> PrincipalContext:
        if principal.role not in allowed:
            raise ForbiddenError("You do not have permission to access this resource")
        return principal

    return dependency


def get_payment_gateway(settings: Settings = Depends(get_settings)) -> XenditClient:
    """Per-request Xendit client built from startup configuration."""
    return XenditClient.from_settings(settings)
