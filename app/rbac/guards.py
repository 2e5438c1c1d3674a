"""
Authorization guards — pure predicates over decoded token claims.

A guard never touches the database and never awaits anything: it only
intersects the route's declared requirement with the role names or
permission strings already frozen into the token.

Both guards use OR semantics: holding ANY one of the required roles
(or permissions) is enough.  An empty requirement always passes.
Permission strings are compared literally, so ``manage:Product`` does
not satisfy a route that requires ``edit:Product``.
"""

from dataclasses import dataclass

from app.schemas import TokenClaims


@dataclass(frozen=True)
class RouteRequirement:
    roles: frozenset[str] = frozenset()
    permissions: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.roles and not self.permissions


class RoleGuard:
    name = "role"

    def allows(self, claims: TokenClaims | None, requirement: RouteRequirement) -> bool:
        if not requirement.roles:
            return True
        if claims is None:
            return False
        return not requirement.roles.isdisjoint(claims.roles)


class PermissionGuard:
    name = "permission"

    def allows(self, claims: TokenClaims | None, requirement: RouteRequirement) -> bool:
        if not requirement.permissions:
            return True
        if claims is None:
            return False
        return not requirement.permissions.isdisjoint(claims.permissions)


# Evaluated in order; the first guard that refuses ends the request.
GUARD_CHAIN: tuple[RoleGuard | PermissionGuard, ...] = (RoleGuard(), PermissionGuard())
