# objsync/app/api/deps.py
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from objsync.app.db.store import ObjectStore
from objsync.app.models.user import User
from objsync.app.security.gateway import AuthGateway, Authenticated, RejectionKind

# Response bodies are deliberately generic: they never say which part of a
# credential failed or whether the username exists.
_REJECTIONS = {
    RejectionKind.MISSING: (status.HTTP_401_UNAUTHORIZED, "Missing Authorization header"),
    RejectionKind.MALFORMED: (status.HTTP_400_BAD_REQUEST, "Invalid Authorization header"),
    RejectionKind.INVALID: (status.HTTP_403_FORBIDDEN, "Invalid credentials"),
}


def get_store(request: Request) -> ObjectStore:
    return request.app.state.store


def get_gateway(request: Request) -> AuthGateway:
    return request.app.state.gateway


async def get_current_user(
        authorization: Optional[str] = Header(default=None),
        gateway: AuthGateway = Depends(get_gateway),
) -> User:
    result = await gateway.authenticate(authorization)
    if isinstance(result, Authenticated):
        return result.user

    status_code, detail = _REJECTIONS[result.kind]
    headers = None
    if result.kind is RejectionKind.MISSING:
        headers = {"WWW-Authenticate": "Basic"}

    raise HTTPException(status_code=status_code, detail=detail, headers=headers)
