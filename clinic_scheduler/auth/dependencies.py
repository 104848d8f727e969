from collections.abc import Callable
from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clinic_scheduler.auth import jwt_handler

security = HTTPBearer()


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str


def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Identity:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not str(subject).isdigit():
        raise HTTPException(status_code=401, detail="Invalid token subject")
    if role not in jwt_handler.ROLES:
        raise HTTPException(status_code=401, detail="Invalid token role")
    return Identity(user_id=int(subject), role=role)


def require_role(*allowed_roles: str) -> Callable[[Identity], Identity]:
    def role_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed_roles:
            raise HTTPException(
                status_code=403,
                detail=f"Access denied. Required roles: {list(allowed_roles)}",
            )
        return identity

    return role_checker
