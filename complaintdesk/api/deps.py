from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from pydantic import BaseModel

from complaintdesk.core.config import settings
from complaintdesk.core.security import decode_token
from complaintdesk.db.models import RoleEnum as Role
from complaintdesk.services.store import ComplaintStore, get_store

# Токен видає сервіс автентифікації; tokenUrl лише для /api/docs
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

StoreDep = Annotated[ComplaintStore, Depends(get_store)]


class CurrentUser(BaseModel):
    id: str
    role: Role
    department: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None

    def actor(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role.value}


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]) -> CurrentUser:
    """
    Декодує Bearer JWT і будує користувача з claims (sub, role, department).
    """
    try:
        payload = decode_token(token, settings.jwt_secret, settings.jwt_alg)
        return CurrentUser(
            id=str(payload["sub"]),
            role=Role(str(payload.get("role") or "").lower()),
            department=payload.get("department"),
            email=payload.get("email"),
            name=payload.get("name"),
        )
    except ValueError:
        # і невалідний токен, і невідома роль
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")


UserDep = Annotated[CurrentUser, Depends(get_current_user)]


def require_role(*allowed: Role):
    """
    Пускає лише користувачів, чия роль входить у перелік allowed.
    Приклад: @router.delete(..., dependencies=[Depends(require_role(Role.admin))])
    """
    allowed_set = set(allowed)

    async def _guard(current: UserDep) -> CurrentUser:
        if current.role not in allowed_set:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current

    return _guard
