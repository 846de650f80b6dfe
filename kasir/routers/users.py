"""
User provisioning router for owners and managers.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from kasir.core.deps import PrincipalContext, require_roles
from kasir.db.session import get_db
from kasir.models.user import Role
from kasir.schemas.common import ApiResponse, MessageResponse
from kasir.schemas.user import (
    AddUserToOutlet,
    ManagerCreate,
    StaffCreate,
    UserOutletResponse,
    UserResponse,
    UserUpdate,
)
from kasir.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])

owner_only = require_roles(Role.OWNER)
owner_or_manager = require_roles(Role.OWNER, Role.MANAGER)


@router.post("/manager", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def create_manager(
    data: ManagerCreate,
    principal: PrincipalContext = Depends(owner_only),
    db: Session = Depends(get_db),
):
    """Create a manager account and assign it to an outlet."""
    user = UserService(db).create_manager(principal, data)
    return ApiResponse.ok(user, status_code=status.HTTP_201_CREATED)


@router.post("/staff", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def create_staff(
    data: StaffCreate,
    principal: PrincipalContext = Depends(owner_or_manager),
    db: Session = Depends(get_db),
):
    """
    Create a staff account.

    Owners choose the outlet; managers always add staff to their own outlet.
    """
    user = UserService(db).create_staff(principal, data)
    return ApiResponse.ok(user, status_code=status.HTTP_201_CREATED)


@router.get("/staff", response_model=ApiResponse[List[UserResponse]])
def list_staff(
    principal: PrincipalContext = Depends(owner_or_manager),
    db: Session = Depends(get_db),
):
    return ApiResponse.ok(UserService(db).list_staff(principal))


@router.post("/add-to-outlet", response_model=ApiResponse[UserOutletResponse], status_code=status.HTTP_201_CREATED)
def add_user_to_outlet(
    data: AddUserToOutlet,
    principal: PrincipalContext = Depends(owner_only),
    db: Session = Depends(get_db),
):
    link = UserService(db).add_user_to_outlet(principal, data)
    return ApiResponse.ok(UserOutletResponse.model_validate(link), status_code=status.HTTP_201_CREATED)


@router.delete("/staff/{staff_id}", response_model=ApiResponse[MessageResponse])
def delete_staff(
    staff_id: int,
    principal: PrincipalContext = Depends(owner_or_manager),
    db: Session = Depends(get_db),
):
    UserService(db).delete_staff(principal, staff_id)
    return ApiResponse.ok(MessageResponse(message="Staff deleted"))


@router.patch("/staff/{staff_id}", response_model=ApiResponse[UserResponse])
def update_staff(
    staff_id: int,
    data: UserUpdate,
    principal: PrincipalContext = Depends(owner_or_manager),
    db: Session = Depends(get_db),
):
    return ApiResponse.ok(UserService(db).update_staff(principal, staff_id, data))


@router.get("/managers", response_model=ApiResponse[List[UserResponse]])
def list_managers(
    principal: PrincipalContext = Depends(owner_only),
    db: Session = Depends(get_db),
):
    return ApiResponse.ok(UserService(db).list_managers(principal))


@router.patch("/managers/{manager_id}", response_model=ApiResponse[UserResponse])
def update_manager(
    manager_id: int,
    data: UserUpdate,
    principal: PrincipalContext = Depends(owner_only),
    db: Session = Depends(get_db),
):
    """Update a manager's profile; a new email or password applies to sign-in as well."""
    return ApiResponse.ok(UserService(db).update_manager(principal, manager_id, data))


@router.delete("/managers/{manager_id}", response_model=ApiResponse[MessageResponse])
def delete_manager(
    manager_id: int,
    principal: PrincipalContext = Depends(owner_only),
    db: Session = Depends(get_db),
):
    UserService(db).delete_manager(principal, manager_id)
    return ApiResponse.ok(MessageResponse(message="Manager deleted"))
