from collections.abc import Mapping
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from support_desk.core.config import get_settings


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller.

    Only the user id is established here; whether the caller is an
    administrator is decided by the ticket core from the user directory.
    """

    user_id: str


bearer_scheme = HTTPBearer(auto_error=False)


def resolve_identity_from_token(token: str | None, tokens: Mapping[str, str]) -> Identity:
    """Return the identity bound to ``token`` or raise a 401."""

    if not token:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = tokens.get(token)
    if user_id is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Identity(user_id=user_id)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
) -> Identity:
    cached = getattr(request.state, "identity", None)
    if isinstance(cached, Identity):
        return cached

    token = credentials.credentials if credentials is not None else None
    identity = resolve_identity_from_token(token, get_settings().api_tokens)
    request.state.identity = identity
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
