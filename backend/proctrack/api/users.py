"""User management endpoints (admin only).

The list reads the read model; writes go through UserService, which owns
validation, hashing and the primordial-admin protections.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from ..core.auth import AuthContext, require_admin
from ..core.config import settings
from ..schemas.user import UserCreate, UserPageResponse, UserResponse, UserRole, UserStatus, UserUpdate
from ..services.read_model import ReadModel
from ..services.record_query import paginate
from ..services.user_service import UserService, filter_users
from .deps import get_read_model, get_user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserPageResponse)
def list_users(
    search: str = "",
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    page: int = Query(1),
    page_size: Optional[int] = Query(None, ge=1, le=500),
    model: ReadModel = Depends(get_read_model),
    auth: AuthContext = Depends(require_admin),
):
    matched = filter_users(
        model.users,
        search,
        role.value if role else None,
        status.value if status else None,
    )
    result = paginate(matched, page, page_size or settings.users_page_size)
    return UserPageResponse(
        items=result.items,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        page_count=result.page_count,
    )


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    body: UserCreate,
    service: UserService = Depends(get_user_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.create_user(body, auth)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    body: UserUpdate,
    service: UserService = Depends(get_user_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.update_user(user_id, body, auth)


@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
    auth: AuthContext = Depends(require_admin),
):
    service.delete_user(user_id, auth)
    return Response(status_code=204)


@router.post("/{user_id}/toggle-status", response_model=UserResponse)
def toggle_user_status(
    user_id: str,
    service: UserService = Depends(get_user_service),
    auth: AuthContext = Depends(require_admin),
):
    return service.toggle_status(user_id, auth)
