"""
Authentication service.

Handles:
- Tenant registration (Company + first ADMIN user, one transaction)
- Admin-initiated user creation inside the admin's own company
- Login: credential check and access-token issuance

Token contents:
    {sub, username, companyId, roles[], permissions[]}
`permissions` is the de-duplicated union of ``action:subject`` strings
over every role the user holds at login time.  The token is the only
carrier of authorization state until it expires; revoking a role does
not affect tokens that were already issued.

All business logic lives here — controllers call service methods
and return the result.
"""

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, UnauthorizedError
from app.core.security import (
    burn_password_check,
    create_access_token,
    hash_password,
    verify_password,
)
from app.models.company import Company
from app.models.permission import Permission, permission_key
from app.models.role import Role, RoleName, role_permissions, user_roles
from app.models.user import User
from app.schemas import TokenClaims

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


# ── Helpers ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class UserAuthView:
    """Read-only projection of a user and everything login needs."""

    id: uuid.UUID
    company_id: uuid.UUID
    username: str
    password_hash: str
    roles: tuple[str, ...]
    permissions: frozenset[str]


async def get_role_by_name(name: str, db: AsyncSession) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == name))
    return result.scalar_one_or_none()


async def load_auth_view(
    username: str,
    company_id: uuid.UUID,
    db: AsyncSession,
) -> UserAuthView | None:
    """
    Fetch the user by (company_id, username) together with role names
    and permission pairs in ONE joined query.

    The result has one row per (role, permission) the user holds;
    outer joins keep the user row when it has no roles or a role has
    no permissions.
    """
    stmt = (
        select(
            User.id,
            User.company_id,
            User.username,
            User.password_hash,
            Role.name.label("role_name"),
            Permission.action,
            Permission.subject,
        )
        .select_from(User)
        .outerjoin(user_roles, user_roles.c.user_id == User.id)
        .outerjoin(Role, Role.id == user_roles.c.role_id)
        .outerjoin(role_permissions, role_permissions.c.role_id == Role.id)
        .outerjoin(Permission, Permission.id == role_permissions.c.permission_id)
        .where(User.company_id == company_id, User.username == username)
    )
    rows = (await db.execute(stmt)).all()
    if not rows:
        return None

    roles: list[str] = []
    permissions: set[str] = set()
    for row in rows:
        if row.role_name is not None and row.role_name not in roles:
            roles.append(row.role_name)
        if row.action is not None:
            permissions.add(permission_key(row.action, row.subject))

    first = rows[0]
    return UserAuthView(
        id=first.id,
        company_id=first.company_id,
        username=first.username,
        password_hash=first.password_hash,
        roles=tuple(roles),
        permissions=frozenset(permissions),
    )


def build_claims(view: UserAuthView) -> TokenClaims:
    return TokenClaims(
        sub=view.id,
        username=view.username,
        company_id=view.company_id,
        roles=list(view.roles),
        permissions=sorted(view.permissions),
    )


# ── Registration ─────────────────────────────────────────────────────

async def register(
    company_name: str,
    username: str,
    email: str,
    password: str,
    name: str,
    db: AsyncSession,
) -> User:
    """
    Create a Company and its first user, bound to the ADMIN role.

    The three inserts commit together.  A duplicate e-mail (or
    company/username pair) rolls everything back, so no Company is left
    behind without its admin.
    """
    admin_role = await get_role_by_name(RoleName.ADMIN.value, db)
    if admin_role is None:
        raise NotFoundError('Role "ADMIN" not found. Seed the role catalog first.')

    password_hash = hash_password(password)

    try:
        company = Company(id=uuid.uuid4(), name=company_name)
        db.add(company)
        await db.flush()

        user = User(
            id=uuid.uuid4(),
            company_id=company.id,
            username=username,
            email=email,
            password_hash=password_hash,
            name=name,
        )
        db.add(user)
        await db.flush()

        await db.execute(insert(user_roles).values(user_id=user.id, role_id=admin_role.id))
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.info("Registration conflict for username=%s email=%s", username, email)
        raise ConflictError("Email or username already exists for this company") from exc

    logger.info("Registered company %s with admin user %s", company.id, user.id)
    return user


async def register_user_by_admin(
    username: str,
    email: str,
    password: str,
    name: str,
    role: str | None,
    company_id: uuid.UUID,
    db: AsyncSession,
) -> User:
    """
    Create a user inside `company_id`.

    `company_id` must come from the calling admin's token, never from
    the request body.  `role` defaults to USER.
    """
    role_name = role or RoleName.USER.value
    target_role = await get_role_by_name(role_name, db)
    if target_role is None:
        raise NotFoundError(f'Role "{role_name}" not found')

    password_hash = hash_password(password)

    try:
        user = User(
            id=uuid.uuid4(),
            company_id=company_id,
            username=username,
            email=email,
            password_hash=password_hash,
            name=name,
        )
        db.add(user)
        await db.flush()

        await db.execute(insert(user_roles).values(user_id=user.id, role_id=target_role.id))
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.info("User creation conflict in company %s for username=%s", company_id, username)
        raise ConflictError("Email or username already exists for this company") from exc

    logger.info("Admin created user %s (%s) in company %s", user.id, role_name, company_id)
    return user


# ── Login ────────────────────────────────────────────────────────────

async def login(
    username: str,
    password: str,
    company_id: uuid.UUID,
    db: AsyncSession,
) -> str:
    """
    Validate credentials and return a signed access token.

    Unknown user and wrong password raise the same error with the same
    message; neither reveals which case occurred.
    """
    view = await load_auth_view(username, company_id, db)

    if view is None:
        burn_password_check(password)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not verify_password(password, view.password_hash):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    claims = build_claims(view)
    access_token = create_access_token(claims.model_dump(mode="json", by_alias=True))

    logger.info("User %s logged in to company %s", view.id, view.company_id)
    return access_token
