"""Authentication dependencies for retrieving the account behind a bearer token."""

from typing import Any, Dict, Union

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_token_claims
from backend.app.db.session import get_db
from backend.app.models.mobile_user import MobileUser
from backend.app.models.user import User


def get_current_account(
    db: Session = Depends(get_db),
    claims: Dict[str, Any] = Depends(get_token_claims),
) -> Union[MobileUser, User]:
    # Mobile tokens resolve to mobile_users, everything else to legacy users
    model = MobileUser if claims.get("kind") == "mobile" else User
    account = db.query(model).filter(model.id == claims["sub"]).first()
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if not account.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return account
