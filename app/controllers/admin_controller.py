"""
Admin controller — role assignment and user management.

The router carries `enforce_route_guards`, so every route here is
authenticated, liveness-checked and then gated by what it declares
with `@requires_roles` / `@requires_permissions`.
Controllers are THIN — they delegate to services and return schemas.

The acting admin's company always comes from `claims.company_id`;
request bodies have no company field.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.role import RoleName
from app.rbac.decorators import requires_permissions, requires_roles
from app.rbac.dependencies import enforce_route_guards
from app.schemas import (
    AdminRegisterUserRequest,
    RegisterResponse,
    RoleAssignmentRequest,
    RoleOut,
    TokenClaims,
    UserOut,
)
from app.services import auth_service, role_service, user_service

router = APIRouter(tags=["Admin"], dependencies=[Depends(enforce_route_guards)])


# ── Role assignment ──────────────────────────────────────────────────
@router.post("/assign-role", status_code=status.HTTP_204_NO_CONTENT)
@requires_roles(RoleName.ADMIN)
async def assign_role(
    body: RoleAssignmentRequest,
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    await role_service.assign_role(body.user_id, body.role_id, claims, db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/remove-role", status_code=status.HTTP_204_NO_CONTENT)
@requires_roles(RoleName.ADMIN)
async def remove_role(
    body: RoleAssignmentRequest,
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    await role_service.remove_role(body.user_id, body.role_id, claims, db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/roles", response_model=list[RoleOut])
@requires_roles(RoleName.ADMIN)
async def list_roles(db: AsyncSession = Depends(get_db)):
    roles = await role_service.list_roles(db)
    return [
        RoleOut(
            id=r.id,
            name=r.name,
            description=r.description,
            permissions=sorted(p.key for p in r.permissions),
        )
        for r in roles
    ]


# ── Users ────────────────────────────────────────────────────────────
@router.post(
    "/admin/register-user",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
@requires_roles(RoleName.ADMIN)
async def register_user_by_admin(
    body: AdminRegisterUserRequest,
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    """Create a user in the admin's own company (default role USER)."""
    user = await auth_service.register_user_by_admin(
        username=body.username,
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
        company_id=claims.company_id,
        db=db,
    )
    return RegisterResponse(
        message="User registered by administrator.",
        user=UserOut.model_validate(user),
    )


@router.get("/users", response_model=list[UserOut])
@requires_permissions("read:User")
async def list_users(
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    users = await user_service.list_users(claims.company_id, db, skip, limit)
    return [UserOut.model_validate(u) for u in users]
