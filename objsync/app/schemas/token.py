# objsync/app/schemas/token.py
from pydantic import BaseModel, Field


# Returned once by PUT /user/token
class TokenResponse(BaseModel):
    token: str


# Body of DELETE /user/token
class TokenDeleteRequest(BaseModel):
    token: str = Field(..., min_length=1)
