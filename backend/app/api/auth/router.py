from typing import Any, Dict, Union

from fastapi import APIRouter, Depends

from backend.app.core.permissions import get_role_permissions
from backend.app.core.security import get_token_claims
from backend.app.dependencies.auth import get_current_account
from backend.app.models.mobile_user import MobileUser
from backend.app.models.user import User

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/verify")
async def verify_token(
    claims: Dict[str, Any] = Depends(get_token_claims),
    account: Union[MobileUser, User] = Depends(get_current_account),
):
    return {
        "valid": True,
        "user": {
            "userId": account.id,
            "username": getattr(account, "username", None) or account.email,
            "email": account.email,
            "role": account.role,
            "companyId": account.company_id,
            "kind": claims.get("kind"),
        },
        "permissions": get_role_permissions(account.role),
    }
