import json
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.logging_config import get_logger
from app.core.security import create_access_token, verify_password
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, TokenResponse
from app.schemas.user import UserRead
from app.services.rbac import parse_permissions


router = APIRouter()
logger = get_logger("auth")


async def parse_request_payload(request: Request) -> dict:
    content_type = (request.headers.get("content-type") or "").split(";")[0].strip().lower()

    if content_type == "application/json":
        return await request.json()

    raw = (await request.body()).decode("utf-8", errors="ignore")
    if not raw:
        return {}

    if content_type in {"application/x-www-form-urlencoded", "text/plain", ""}:
        parsed = parse_qs(raw, keep_blank_values=True)
        return {key: values[0] if values else "" for key, values in parsed.items()}

    try:
        return await request.json()
    except json.JSONDecodeError:
        return {}


def serialize_user(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        email=user.email,
        name=user.name,
        username=user.username,
        role=user.role_name,
        permissions=parse_permissions(user.role.permissions) if user.role else [],
        designation=user.designation,
        phone_number=user.phone_number,
        location=user.location,
        is_active=user.is_active,
        created_at=user.created_at,
    )


@router.post("/login", response_model=TokenResponse)
async def login(request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    payload_data = await parse_request_payload(request)
    if not isinstance(payload_data, dict):
        raise HTTPException(status_code=422, detail="Invalid credentials")
    # OAuth2 password form sends "username"
    if "email" not in payload_data and "username" in payload_data:
        payload_data["email"] = payload_data["username"]
    try:
        payload = LoginRequest(**payload_data)
    except ValidationError:
        raise HTTPException(status_code=422, detail="Invalid credentials")

    user = db.scalar(select(User).where(User.email == payload.email.strip().lower()))
    if not user or not user.is_active or not verify_password(payload.password, user.hashed_password):
        logger.info("login_failed", extra={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(user_id=user.id, role=user.role_name, token_version=user.token_version)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)) -> UserRead:
    return serialize_user(current_user)
