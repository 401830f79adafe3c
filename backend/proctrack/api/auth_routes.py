"""Authentication endpoints.

    POST /api/auth/login  -- check credentials and receive a bearer token
    GET  /api/auth/me     -- identity behind the current token
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..core.config import settings
from ..core.token_factory import create_token
from ..database import get_db
from ..exceptions import AuthenticationError
from ..schemas.user import UserResponse
from ..services import audit_service, auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    email: str
    password: str

    model_config = {
        "json_schema_extra": {
            "examples": [{"email": "admin@gmail.com", "password": "Admin@1234"}]
        }
    }


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class MeResponse(BaseModel):
    user_id: str
    role: str
    email: str
    name: str


@router.post("/login", response_model=LoginResponse, summary="Authenticate and receive a token")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = auth_service.authenticate(db, body.email, body.password)
    except AuthenticationError:
        audit_service.log(db, body.email.strip().lower(), "login_failed", "user")
        raise
    token = create_token(
        subject=user.id,
        role=user.role,
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_hours=settings.jwt_expires_hours,
    )
    logger.info("User logged in", extra={"user_id": user.id})
    audit_service.log(db, user.email, "login", "user", user.id)
    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=MeResponse, summary="Current identity")
def get_me(auth: AuthContext = Depends(require_auth)):
    return MeResponse(user_id=auth.user_id, role=auth.role, email=auth.email, name=auth.name)
