"""Mobile app account endpoints: admin CRUD, self-registration and login."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.security import create_access_token, get_password_hash, verify_password
from backend.app.core.time import utc_now
from backend.app.db.session import get_db
from backend.app.dependencies.crm import TwentyClientFactory, get_company_or_404, get_twenty_client_factory, tenant_client
from backend.app.models.mobile_user import MobileUser
from backend.app.schemas.mobile_user import (
    ROLE_LABEL_FIELDS,
    MobileUserCreate,
    MobileUserLogin,
    MobileUserRead,
    MobileUserRegister,
    MobileUserUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mobile-users", tags=["mobile-users"])

# Labels that must map to an option of the remote Lead enum
ROLE_ENUM_TYPES = {
    "sales_rep": "LeadSalesRepEnum",
    "canvasser": "LeadCanvasserEnum",
}

# At most one account per company for these labels
UNIQUE_LABEL_FIELDS = ("sales_rep", "canvasser")


def _label_text(field: str) -> str:
    return field.replace("_", " ")


def _get_mobile_user_or_404(db: Session, user_id: str) -> MobileUser:
    user = db.query(MobileUser).filter(MobileUser.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _check_identity_available(db: Session, username: Optional[str], email: Optional[str], exclude_id: Optional[str] = None) -> None:
    query = db.query(MobileUser)
    if exclude_id:
        query = query.filter(MobileUser.id != exclude_id)
    if username and query.filter(MobileUser.username == username).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
    if email and query.filter(MobileUser.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")


def _check_label_available(
    db: Session,
    company_id: Optional[str],
    field: str,
    label: Optional[str],
    exclude_id: Optional[str] = None,
) -> None:
    if not company_id or not label or field not in UNIQUE_LABEL_FIELDS:
        return
    column = getattr(MobileUser, field)
    query = db.query(MobileUser).filter(MobileUser.company_id == company_id, column == label)
    if exclude_id:
        query = query.filter(MobileUser.id != exclude_id)
    existing = query.first()
    if existing:
        text = _label_text(field)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": f"{text.capitalize()} already has an account",
                "message": f'An account already exists for {text} "{label}" with username "{existing.username}"',
            },
        )


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Mobile user write rejected by a unique constraint: %s", exc.orig)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Mobile user already exists")


@router.get("")
async def list_mobile_users(company_id: Optional[str] = Query(default=None, alias="companyId"), db: Session = Depends(get_db)):
    query = db.query(MobileUser)
    if company_id:
        query = query.filter(MobileUser.company_id == company_id)
    users = query.order_by(MobileUser.created_at.desc()).all()
    return {"users": [MobileUserRead.model_validate(user) for user in users]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_mobile_user(user_in: MobileUserCreate, db: Session = Depends(get_db)):
    if user_in.company_id:
        get_company_or_404(db, user_in.company_id)
    _check_identity_available(db, user_in.username, user_in.email)
    for field in UNIQUE_LABEL_FIELDS:
        _check_label_available(db, user_in.company_id, field, getattr(user_in, field))

    user = MobileUser(
        username=user_in.username,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        role=user_in.role,
        company_id=user_in.company_id,
        sales_rep=user_in.sales_rep,
        canvasser=user_in.canvasser,
        office_manager=user_in.office_manager,
        project_manager=user_in.project_manager,
        is_active=True,
    )
    db.add(user)
    _commit_or_conflict(db)
    db.refresh(user)
    return {"message": "User created successfully", "user": MobileUserRead.model_validate(user)}


@router.put("")
async def update_mobile_user(user_in: MobileUserUpdate, db: Session = Depends(get_db)):
    user = _get_mobile_user_or_404(db, user_in.id)
    updates = user_in.model_dump(exclude_unset=True, exclude={"id"})
    _check_identity_available(db, updates.get("username"), updates.get("email"), exclude_id=user.id)
    for field in UNIQUE_LABEL_FIELDS:
        if field in updates:
            _check_label_available(db, user.company_id, field, updates[field], exclude_id=user.id)

    password = updates.pop("password", None)
    if password:
        user.password_hash = get_password_hash(password)
    for field, value in updates.items():
        setattr(user, field, value)
    _commit_or_conflict(db)
    db.refresh(user)
    return {"message": "User updated successfully", "user": MobileUserRead.model_validate(user)}


@router.delete("")
async def delete_mobile_user(user_id: str = Query(alias="id"), db: Session = Depends(get_db)):
    user = _get_mobile_user_or_404(db, user_id)
    db.delete(user)
    db.commit()
    return {"message": "User deleted successfully"}


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_mobile_user(
    user_in: MobileUserRegister,
    db: Session = Depends(get_db),
    client_factory: TwentyClientFactory = Depends(get_twenty_client_factory),
):
    company = get_company_or_404(db, user_in.company_id)
    label_field = ROLE_LABEL_FIELDS[user_in.role]
    label = user_in.label

    enum_type = ROLE_ENUM_TYPES.get(label_field)
    if enum_type:
        async with tenant_client(company, client_factory) as client:
            options = await client.get_enum_values(enum_type)
        if label not in options:
            text = _label_text(label_field)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "error": f"Invalid {text}",
                    "message": f'{text.capitalize()} "{label}" does not exist in Twenty CRM. Available options: {", ".join(options)}',
                    "availableOptions": options,
                },
            )

    _check_identity_available(db, user_in.username, user_in.email)
    _check_label_available(db, company.id, label_field, label)

    user = MobileUser(
        username=user_in.username,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        role=user_in.role,
        company_id=company.id,
        is_active=True,
    )
    setattr(user, label_field, label)
    db.add(user)
    _commit_or_conflict(db)
    db.refresh(user)
    logger.info("Registered mobile user %s as %s %s", user.username, user.role, label)
    return {"success": True, "user": MobileUserRead.model_validate(user)}


@router.post("/login")
async def login_mobile_user(credentials: MobileUserLogin, db: Session = Depends(get_db)):
    user = db.query(MobileUser).filter(MobileUser.username == credentials.username).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive. Please contact your administrator.",
        )
    if not verify_password(credentials.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    user.last_login = utc_now()
    db.commit()
    db.refresh(user)
    token = create_access_token(
        user.id,
        role=user.role,
        kind="mobile",
        extra_claims={"company_id": user.company_id, "sales_rep": user.sales_rep},
    )
    logger.info("Mobile login for %s", user.username)
    return {
        "success": True,
        "access_token": token,
        "token_type": "bearer",
        "user": MobileUserRead.model_validate(user),
    }
