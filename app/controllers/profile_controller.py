"""
Profile controller — the caller's own identity.

`GET /profile` only needs a valid, live token.  `GET /profile/admin-data`
additionally requires the ADMIN role.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.role import RoleName
from app.rbac.decorators import requires_roles
from app.rbac.dependencies import enforce_route_guards
from app.schemas import TokenClaims, UserOut
from app.services import user_service

router = APIRouter(prefix="/profile", tags=["Profile"], dependencies=[Depends(enforce_route_guards)])


@router.get("", response_model=UserOut)
async def get_my_profile(
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_in_company(claims.sub, claims.company_id, db)
    return UserOut.model_validate(user)


@router.get("/admin-data")
@requires_roles(RoleName.ADMIN)
async def get_admin_data(claims: TokenClaims = Depends(enforce_route_guards)) -> dict[str, Any]:
    return {
        "message": f"Hello, admin {claims.username}!",
        "userPayload": claims.model_dump(mode="json", by_alias=True),
    }
