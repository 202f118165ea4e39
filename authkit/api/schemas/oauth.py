from __future__ import annotations

from pydantic import BaseModel


class OAuthProvidersResponse(BaseModel):
    providers: list[str]


class OAuthAuthorizeResponse(BaseModel):
    provider: str
    authorization_url: str
    state: str
