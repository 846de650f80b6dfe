"""
Authentication router with signup, signin, refresh, logout and profile endpoints.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kasir.core.deps import PrincipalContext, get_bearer_token, get_current_account, get_principal
from kasir.core.exceptions import BadRequestError, UnauthenticatedError
from kasir.core.security import (
    blacklist_token,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    is_token_blacklisted,
    verify_password,
)
from kasir.db.session import get_db
from kasir.models.user import AuthAccount
from kasir.schemas.auth import (
    AccountSignin,
    AccountSignup,
    OutletSummary,
    ProfileResponse,
    Token,
    TokenRefresh,
)
from kasir.schemas.common import ApiResponse, MessageResponse

router = APIRouter(prefix="/auth", tags=["auth"])


def _issue_tokens(account_id: int) -> Token:
    return Token(
        access_token=create_access_token(subject=str(account_id)),
        refresh_token=create_refresh_token(subject=str(account_id)),
    )


@router.post("/signup", response_model=ApiResponse[Token], status_code=status.HTTP_201_CREATED)
def signup(data: AccountSignup, db: Session = Depends(get_db)):
    """
    Register a new auth account.
    Returns access and refresh tokens on success.
    """
    existing = db.query(AuthAccount).filter(AuthAccount.email == data.email).first()
    if existing:
        raise BadRequestError("Email already registered")

    account = AuthAccount(
        email=data.email,
        hashed_password=hash_password(data.password),
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise BadRequestError("Email already registered")
    db.refresh(account)

    return ApiResponse.ok(_issue_tokens(account.id), status_code=status.HTTP_201_CREATED)


@router.post("/signin", response_model=ApiResponse[Token])
def signin(data: AccountSignin, db: Session = Depends(get_db)):
    """Authenticate an account and return tokens."""
    account = db.query(AuthAccount).filter(AuthAccount.email == data.email).first()
    if not account or not verify_password(data.password, account.hashed_password):
        raise UnauthenticatedError("Invalid email or password")

    return ApiResponse.ok(_issue_tokens(account.id))


@router.post("/refresh", response_model=ApiResponse[Token])
def refresh(token_data: TokenRefresh, db: Session = Depends(get_db)):
    """
    Exchange a refresh token for a new access and refresh token.

    Refresh tokens are single use: the presented token is blacklisted and a
    new pair is issued.
    """
    old_token = token_data.refresh_token
    payload = decode_token(old_token)

    if payload is None:
        raise UnauthenticatedError("Invalid or expired refresh token")

    if payload.get("type") != "refresh":
        raise UnauthenticatedError("Invalid token type")

    if is_token_blacklisted(old_token, db):
        raise UnauthenticatedError("Refresh token has already been used. Please sign in again.")

    try:
        account_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthenticatedError("Invalid token payload")

    account = db.get(AuthAccount, account_id)
    if not account:
        raise UnauthenticatedError("Account not found")

    exp_timestamp = payload.get("exp")
    if exp_timestamp:
        expires_at = datetime.fromtimestamp(exp_timestamp, tz=timezone.utc)
        blacklist_token(old_token, expires_at, db)

    return ApiResponse.ok(_issue_tokens(account.id))


@router.post("/logout", response_model=ApiResponse[MessageResponse])
def logout(
    token: str = Depends(get_bearer_token),
    account: AuthAccount = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """Revoke the presented access token."""
    payload = decode_token(token) or {}
    exp_timestamp = payload.get("exp")
    if exp_timestamp:
        expires_at = datetime.fromtimestamp(exp_timestamp, tz=timezone.utc)
    else:
        expires_at = datetime.now(timezone.utc)
    blacklist_token(token, expires_at, db)

    return ApiResponse.ok(MessageResponse(message="Successfully logged out"))


@router.get("/me", response_model=ApiResponse[ProfileResponse])
def get_me(principal: PrincipalContext = Depends(get_principal)):
    """Get the caller's profile and outlet scope."""
    user = principal.user
    profile = ProfileResponse(
        id=user.id,
        account_id=user.account_id,
        fullname=user.fullname,
        email=user.email,
        role=user.role,
        address=user.address,
        phone=user.phone,
        outlets=[OutletSummary.model_validate(outlet) for outlet in principal.outlets],
    )
    return ApiResponse.ok(profile)
