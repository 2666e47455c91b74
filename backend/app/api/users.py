"""Legacy web-dashboard user endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.security import create_access_token, get_password_hash, verify_password
from backend.app.core.time import utc_now
from backend.app.db.session import get_db
from backend.app.dependencies.crm import get_company_or_404
from backend.app.models.user import User
from backend.app.schemas.user import UserCreate, UserLogin, UserRead, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def _to_read(user: User) -> UserRead:
    read = UserRead.model_validate(user)
    return read.model_copy(update={"company_name": user.company.name if user.company else None})


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _email_taken(db: Session, email: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(User).filter(User.email == email)
    if exclude_id:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@router.get("")
async def list_users(company_id: Optional[str] = Query(default=None, alias="companyId"), db: Session = Depends(get_db)):
    query = db.query(User)
    if company_id:
        query = query.filter(User.company_id == company_id)
    users = query.order_by(User.created_at.desc()).all()
    return {"users": [_to_read(user) for user in users]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(user_in: UserCreate, db: Session = Depends(get_db)):
    get_company_or_404(db, user_in.company_id)
    if _email_taken(db, user_in.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    user = User(
        company_id=user_in.company_id,
        name=user_in.name,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        role=user_in.role,
        is_active=user_in.is_active,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")
    db.refresh(user)
    logger.info("Created user %s for company %s", user.email, user.company_id)
    return {"message": "User created successfully", "user": _to_read(user)}


@router.put("")
async def update_user(user_in: UserUpdate, db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_in.id)
    updates = user_in.model_dump(exclude_unset=True, exclude={"id"})
    if updates.get("email") and _email_taken(db, updates["email"], exclude_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    password = updates.pop("password", None)
    if password:
        user.password_hash = get_password_hash(password)
    for field, value in updates.items():
        if value is not None:
            setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return {"message": "User updated successfully", "user": _to_read(user)}


@router.delete("")
async def delete_user(user_id: str = Query(alias="id"), db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    return {"message": "User deleted successfully"}


@router.post("/login")
async def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email, User.is_active.is_(True)).first()
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    user.last_login = utc_now()
    db.commit()
    db.refresh(user)
    token = create_access_token(user.id, role=user.role, kind="web", extra_claims={"company_id": user.company_id})
    return {"access_token": token, "token_type": "bearer", "user": _to_read(user)}
