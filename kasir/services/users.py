"""
Manager and staff provisioning.

Creating a user touches three records (auth account, profile, outlet
membership), each committed on its own. The steps run as a Saga so a failure
part-way through deletes whatever the earlier steps created.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kasir.core.deps import PrincipalContext
from kasir.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
)
from kasir.core.security import hash_password
from kasir.models.outlet import Outlet
from kasir.models.user import AuthAccount, Role, User, UserOutlet
from kasir.schemas.user import (
    AddUserToOutlet,
    ManagerCreate,
    StaffCreate,
    UserCreateBase,
    UserResponse,
    UserUpdate,
)
from kasir.services.saga import Saga

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: Session):
        self.db = db

    def create_manager(self, ctx: PrincipalContext, data: ManagerCreate) -> UserResponse:
        if ctx.role is not Role.OWNER:
            raise ForbiddenError("Only owners can create managers")
        return self._provision(data, Role.MANAGER, data.outlet_id)

    def create_staff(self, ctx: PrincipalContext, data: StaffCreate) -> UserResponse:
        role = ctx.role
        if role is Role.OWNER:
            if data.outlet_id is None:
                raise BadRequestError("outlet_id is required")
            outlet_id = data.outlet_id
        elif role is Role.MANAGER:
            outlet_id = ctx.require_outlet().id
        elif role is Role.STAFF:
            raise ForbiddenError("Staff cannot create users")
        else:
            raise ValueError(f"Unhandled role: {role}")
        return self._provision(data, Role.STAFF, outlet_id)

    def list_managers(self, ctx: PrincipalContext) -> List[UserResponse]:
        if ctx.role is not Role.OWNER:
            raise ForbiddenError("Only owners can list managers")
        return [_to_response(user, outlet_id) for user, outlet_id in self._members(Role.MANAGER).all()]

    def update_manager(self, ctx: PrincipalContext, manager_id: int, data: UserUpdate) -> UserResponse:
        if ctx.role is not Role.OWNER:
            raise ForbiddenError("Only owners can update managers")
        manager = self._get_member(manager_id, Role.MANAGER)
        return self._update_profile(manager, data)

    def delete_manager(self, ctx: PrincipalContext, manager_id: int) -> None:
        if ctx.role is not Role.OWNER:
            raise ForbiddenError("Only owners can delete managers")
        manager = self._get_member(manager_id, Role.MANAGER)
        self._delete_member(manager)

    def update_staff(self, ctx: PrincipalContext, staff_id: int, data: UserUpdate) -> UserResponse:
        staff = self._get_member(staff_id, Role.STAFF)
        self._check_manages(ctx, staff)
        return self._update_profile(staff, data)

    def list_staff(self, ctx: PrincipalContext) -> List[UserResponse]:
        query = self._members(Role.STAFF)
        role = ctx.role
        if role is Role.OWNER:
            pass
        elif role is Role.MANAGER:
            query = query.filter(UserOutlet.outlet_id == ctx.require_outlet().id)
        elif role is Role.STAFF:
            raise ForbiddenError("Staff cannot list users")
        else:
            raise ValueError(f"Unhandled role: {role}")

        return [_to_response(user, outlet_id) for user, outlet_id in query.all()]

    def add_user_to_outlet(self, ctx: PrincipalContext, data: AddUserToOutlet) -> UserOutlet:
        if ctx.role is not Role.OWNER:
            raise ForbiddenError("Only owners can assign users to outlets")
        if self.db.get(User, data.user_id) is None:
            raise NotFoundError("User not found")
        if self.db.get(Outlet, data.outlet_id) is None:
            raise NotFoundError("Outlet not found")

        link = UserOutlet(user_id=data.user_id, outlet_id=data.outlet_id)
        self.db.add(link)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("User is already assigned to this outlet") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Failed to assign user to outlet") from e
        self.db.refresh(link)
        return link

    def delete_staff(self, ctx: PrincipalContext, staff_id: int) -> None:
        staff = self._get_member(staff_id, Role.STAFF)
        self._check_manages(ctx, staff)
        self._delete_member(staff)

    # ============ Members ============

    def _members(self, role: Role):
        return (
            self.db.query(User, UserOutlet.outlet_id)
            .outerjoin(UserOutlet, UserOutlet.user_id == User.id)
            .filter(User.role == role.value)
            .order_by(User.id)
        )

    def _get_member(self, user_id: int, role: Role) -> User:
        user = self.db.get(User, user_id)
        if user is None or user.role_enum is not role:
            raise NotFoundError(f"{role.value.capitalize()} not found")
        return user

    def _check_manages(self, ctx: PrincipalContext, staff: User) -> None:
        role = ctx.role
        if role is Role.OWNER:
            return
        if role is Role.MANAGER:
            outlet_id = ctx.require_outlet().id
            if all(link.outlet_id != outlet_id for link in staff.outlet_links):
                raise ForbiddenError("Staff is not part of the outlet you manage")
        elif role is Role.STAFF:
            raise ForbiddenError("Staff cannot manage users")
        else:
            raise ValueError(f"Unhandled role: {role}")

    def _update_profile(self, user: User, data: UserUpdate) -> UserResponse:
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        account = user.account

        email = changes.pop("email", None)
        if email is not None and email != user.email:
            taken = (
                self.db.query(AuthAccount)
                .filter(AuthAccount.email == email, AuthAccount.id != user.account_id)
                .first()
            )
            if taken is not None:
                raise ConflictError("Email is already registered")
            user.email = email
            if account is not None:
                account.email = email

        password = changes.pop("password", None)
        if password is not None and account is not None:
            account.hashed_password = hash_password(password)

        for field, value in changes.items():
            setattr(user, field, value)

        self._commit_step(conflict_message="Email is already registered")
        self.db.refresh(user)
        logger.info("Updated %s %s", user.role, user.id)
        outlet_id = user.outlet_links[0].outlet_id if user.outlet_links else None
        return _to_response(user, outlet_id)

    def _delete_member(self, user: User) -> None:
        user_id, role = user.id, user.role
        account = user.account
        try:
            # outlet links go with the profile
            self.db.delete(user)
            self.db.flush()
            if account is not None:
                self.db.delete(account)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to delete %s %s: %s", role, user_id, e)
            raise InternalError(f"Failed to delete {role}") from e
        logger.info("Deleted %s %s", role, user_id)

    # ============ Provisioning saga ============

    def _provision(self, data: UserCreateBase, role: Role, outlet_id: int) -> UserResponse:
        if self.db.get(Outlet, outlet_id) is None:
            raise NotFoundError("Outlet not found")
        if self.db.query(AuthAccount).filter(AuthAccount.email == data.email).first() is not None:
            raise ConflictError("Email is already registered")

        saga = (
            Saga(f"create_{role.value}")
            .step("account", lambda ctx: self._create_account(data), self._delete_account)
            .step("user", lambda ctx: self._create_user(ctx["account"], data, role), self._delete_user)
            .step("membership", lambda ctx: self._link_outlet(ctx["user"], outlet_id))
        )
        result = saga.run()

        user = self.db.get(User, result["user"])
        logger.info("Provisioned %s %s at outlet %s", role.value, user.id, outlet_id)
        return _to_response(user, outlet_id)

    def _create_account(self, data: UserCreateBase) -> int:
        account = AuthAccount(email=data.email, hashed_password=hash_password(data.password))
        self.db.add(account)
        self._commit_step(conflict_message="Email is already registered")
        return account.id

    def _create_user(self, account_id: int, data: UserCreateBase, role: Role) -> int:
        user = User(
            account_id=account_id,
            fullname=data.fullname,
            email=data.email,
            address=data.address,
            phone=data.phone,
            role=role.value,
        )
        self.db.add(user)
        self._commit_step(conflict_message="User profile already exists")
        return user.id

    def _link_outlet(self, user_id: int, outlet_id: int) -> int:
        link = UserOutlet(user_id=user_id, outlet_id=outlet_id)
        self.db.add(link)
        self._commit_step(conflict_message="User is already assigned to this outlet")
        return link.id

    def _delete_account(self, ctx: Dict[str, Any]) -> None:
        account = self.db.get(AuthAccount, ctx["account"])
        if account is not None:
            self.db.delete(account)
            self.db.commit()

    def _delete_user(self, ctx: Dict[str, Any]) -> None:
        user = self.db.get(User, ctx["user"])
        if user is not None:
            self.db.delete(user)
            self.db.commit()

    def _commit_step(self, conflict_message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(conflict_message) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Failed to save user") from e


def _to_response(user: User, outlet_id: Optional[int]) -> UserResponse:
    return UserResponse(
        id=user.id,
        account_id=user.account_id,
        fullname=user.fullname,
        email=user.email,
        role=user.role,
        address=user.address,
        phone=user.phone,
        outlet_id=outlet_id,
    )
