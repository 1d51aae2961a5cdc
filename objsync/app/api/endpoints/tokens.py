# objsync/app/api/endpoints/tokens.py
from fastapi import APIRouter, Depends, HTTPException, Response, status

from objsync.app.api import deps
from objsync.app.models.user import User
from objsync.app.schemas.token import TokenDeleteRequest, TokenResponse
from objsync.app.security.gateway import AuthGateway

router = APIRouter()


@router.put("/token", response_model=TokenResponse)
async def create_token(
        gateway: AuthGateway = Depends(deps.get_gateway),
        current_user: User = Depends(deps.get_current_user),
):
    """Issue a new bearer token for the caller (Basic or Bearer auth)."""
    _, encoded = await gateway.issue_token(current_user)
    return TokenResponse(token=encoded)


@router.delete("/token", status_code=status.HTTP_202_ACCEPTED)
async def delete_token(
        body: TokenDeleteRequest,
        gateway: AuthGateway = Depends(deps.get_gateway),
        current_user: User = Depends(deps.get_current_user),
):
    """
    Revoke a token. Only the caller's own tokens can be deleted; an unknown
    or foreign token id is accepted silently.
    """
    revoked = await gateway.revoke_token(current_user, body.token)
    if revoked is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token")

    return Response(status_code=status.HTTP_202_ACCEPTED)
