"""Authentication API endpoints.

Public endpoints:
    POST /auth/register  — create account (first user becomes platform admin)
    POST /auth/login     — authenticate and receive JWT

Authenticated endpoints:
    POST /auth/logout    — revoke the current token
    GET  /auth/me        — current user
    POST /auth/users     — create an OWNER / ADMIN / STAFF account (REGISTER-<ROLE>)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import ensure_permission, get_bearer_token, get_permission_store, require_auth
from ..core.principal import Principal
from ..database import get_db
from ..exceptions import AuthenticationError
from ..repositories.permission_store import PermissionStore
from ..schemas.auth import CreateUserRequest, LoginRequest, LoginResponse, RegisterRequest, UserResponse
from ..schemas.common import ApiResponse
from ..services import audit_service, auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=201,
    summary="Register a new user",
    description="Open registration. The first account becomes the platform administrator.",
)
def register_user(body: RegisterRequest, db: Session = Depends(get_db)):
    user = auth_service.register_user(db, body.name, body.email, body.password)
    return ApiResponse(message="User registered successfully", data=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    summary="Authenticate and receive JWT",
)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, body.email, body.password)
    token = auth_service.issue_token(user)
    return ApiResponse(data=LoginResponse(token=token, user=UserResponse.model_validate(user)))


@router.post("/logout", response_model=ApiResponse[None], summary="Revoke the current token")
def logout(
    token: str = Depends(get_bearer_token),
    principal: Principal = Depends(require_auth),
    db: Session = Depends(get_db),
):
    auth_service.logout(db, token, principal.user_id)
    return ApiResponse(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse[UserResponse], summary="Get current user")
def get_me(principal: Principal = Depends(require_auth), db: Session = Depends(get_db)):
    user = auth_service.get_user(db, principal.user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return ApiResponse(data=UserResponse.model_validate(user))


@router.post(
    "/users",
    response_model=ApiResponse[UserResponse],
    status_code=201,
    summary="Create a business account",
    description="Creating an account with role X requires the REGISTER-X permission.",
)
def create_user(
    body: CreateUserRequest,
    principal: Principal = Depends(require_auth),
    store: PermissionStore = Depends(get_permission_store),
    db: Session = Depends(get_db),
):
    ensure_permission(store, principal, f"REGISTER-{body.role.value}")
    user = auth_service.create_account(db, body.name, body.email, body.password, body.role.value)
    audit_service.log(db, principal.user_id, "create", "user", user.id, details={"role": body.role.value})
    return ApiResponse(message="User created successfully", data=UserResponse.model_validate(user))
