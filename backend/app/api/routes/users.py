from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import log_action, require_permission
from app.api.routes.auth import serialize_user
from app.core.security import hash_password
from app.db.session import get_db
from app.models.role import Role
from app.models.user import User
from app.schemas.user import UserCreate, UserRead, UserUpdate


router = APIRouter()


def get_role(db: Session, role_name: str) -> Role:
    role = db.scalar(select(Role).where(Role.name == role_name))
    if not role:
        raise HTTPException(status_code=400, detail=f"Unknown role: {role_name}")
    return role


@router.get("", response_model=list[UserRead])
def list_users(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("users:manage")),
) -> list[UserRead]:
    rows = db.scalars(select(User).order_by(User.id.asc())).all()
    return [serialize_user(row) for row in rows]


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("users:manage")),
) -> UserRead:
    email = payload.email.strip().lower()
    if db.scalar(select(User).where(User.email == email)):
        raise HTTPException(status_code=409, detail="Email already registered")
    if payload.username and db.scalar(select(User).where(User.username == payload.username)):
        raise HTTPException(status_code=409, detail="Username already taken")

    user = User(
        email=email,
        name=payload.name,
        username=payload.username,
        hashed_password=hash_password(payload.password),
        role_id=get_role(db, payload.role.value).id,
        designation=payload.designation,
        phone_number=payload.phone_number,
        location=payload.location,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log_action(db, current_user.id, "create", "user", user.id, {"email": user.email, "role": payload.role.value})
    return serialize_user(user)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("users:manage")),
) -> UserRead:
    user = db.scalar(select(User).where(User.id == user_id))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    changes = payload.model_dump(exclude_unset=True, exclude={"password"})
    if payload.role is not None:
        user.role_id = get_role(db, payload.role.value).id
        changes["role"] = payload.role.value
        # role changes invalidate issued tokens
        user.token_version += 1
    for field in ("name", "designation", "phone_number", "location"):
        value = getattr(payload, field)
        if value is not None:
            setattr(user, field, value)
    if payload.is_active is not None:
        user.is_active = payload.is_active
        if not payload.is_active:
            user.token_version += 1
    if payload.password:
        user.hashed_password = hash_password(payload.password)
        user.token_version += 1
        changes["password"] = "changed"
    db.commit()
    db.refresh(user)

    log_action(db, current_user.id, "update", "user", user.id, changes)
    return serialize_user(user)
