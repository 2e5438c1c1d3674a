"""
RBAC dependencies — authentication, liveness and guard enforcement.

`get_current_claims` runs on every protected request:

1. Extract the bearer token (missing → 401).
2. Verify signature & expiry and parse the claim set (invalid → 401).
3. Identity liveness: one primary-key lookup confirms the token's
   subject still exists *in the company the token names*.  A valid
   signature alone is not enough (stale subject → 401).

`enforce_route_guards` then looks up the requirement declared for the
matched endpoint and runs the ordered guard chain.  A refusal is a 403
with NO details about which roles or permissions were missing.  An
endpoint with no entry in `app.state.route_requirements` is refused
as well.

Usage in a router:
    router = APIRouter(dependencies=[Depends(enforce_route_guards)])

Or inject the claims into a handler:
    async def me(claims: TokenClaims = Depends(enforce_route_guards)): ...
"""

import logging
from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import bearer_scheme, decode_access_token
from app.models.user import User
from app.rbac.guards import GUARD_CHAIN, RouteRequirement
from app.schemas import TokenClaims

logger = logging.getLogger("rbac")


async def ensure_identity_alive(claims: TokenClaims, db: AsyncSession) -> None:
    """Reject a token whose subject was deleted or left the claimed company."""
    stmt = select(User.id).where(
        User.id == claims.sub,
        User.company_id == claims.company_id,
    )
    if (await db.execute(stmt)).scalar_one_or_none() is None:
        logger.warning("Stale token for user %s in company %s", claims.sub, claims.company_id)
        raise UnauthorizedError("Invalid token or user no longer exists")


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> TokenClaims:
    if credentials is None:
        raise UnauthorizedError()

    payload = decode_access_token(credentials.credentials)
    try:
        claims = TokenClaims.model_validate(payload)
    except ValidationError as exc:
        raise UnauthorizedError("Invalid token payload") from exc

    await ensure_identity_alive(claims, db)
    return claims


def route_requirement_for(request: Request) -> RouteRequirement | None:
    """Requirement declared for the matched endpoint, or None if unknown."""
    endpoint = request.scope.get("endpoint")
    if endpoint is None:
        endpoint = getattr(request.scope.get("route"), "endpoint", None)
    requirements: dict[Callable, RouteRequirement] = getattr(
        request.app.state, "route_requirements", {}
    )
    if endpoint is None:
        return None
    return requirements.get(endpoint)


async def enforce_route_guards(
    request: Request,
    claims: TokenClaims = Depends(get_current_claims),
) -> TokenClaims:
    requirement = route_requirement_for(request)
    if requirement is None:
        logger.warning(
            "No guard requirement registered for %s %s; denying user %s",
            request.method,
            request.url.path,
            claims.sub,
        )
        raise ForbiddenError()

    for guard in GUARD_CHAIN:
        if not guard.allows(claims, requirement):
            logger.warning(
                "%s guard denied user %s on %s %s — required roles: %s, permissions: %s",
                guard.name,
                claims.sub,
                request.method,
                request.url.path,
                sorted(requirement.roles),
                sorted(requirement.permissions),
            )
            raise ForbiddenError()
    return claims
