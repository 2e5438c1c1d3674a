"""
Role & permission catalog seeding.

Run this against a live database before the first registration to
populate the canonical roles, permissions and role → permission links.
It is IDEMPOTENT — safe to re-run:

    • roles are matched by name; an existing role keeps its description
    • permissions are matched by (action, subject)
    • a role → permission link is inserted only when it is missing

A permission whose action is not one of create/read/edit/delete/manage,
a mapping that names an unknown permission key, or a role that is not
in the catalog, is logged and skipped.  Everything else still seeds.
The whole run is one transaction: it either commits completely or
rolls back completely.

Usage:
    python -m app.rbac.permission_seed
"""

import asyncio
import logging
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.models import Base  # registers every table for create_all
from app.models.permission import Permission, PermissionAction, permission_key
from app.models.role import Role, role_permissions

logger = logging.getLogger(__name__)

_ACTIONS = frozenset(a.value for a in PermissionAction)

# ────────────────────────────────────────────────────────────────────
# 1.  CANONICAL ROLES
# ────────────────────────────────────────────────────────────────────
ROLES: list[dict[str, str]] = [
    {"name": "ADMIN", "description": "System administrator with full access"},
    {"name": "EDITOR", "description": "Content editor who can create and edit"},
    {"name": "USER", "description": "Standard user with basic read access"},
]

# ────────────────────────────────────────────────────────────────────
# 2.  CANONICAL PERMISSION LIST
# ────────────────────────────────────────────────────────────────────
PERMISSIONS: list[dict[str, str]] = [
    # Users
    {"action": "read", "subject": "User", "description": "Read user information"},
    {"action": "manage", "subject": "User", "description": "Create, update and delete users"},
    {"action": "edit", "subject": "User", "description": "Edit users"},
    {"action": "delete", "subject": "User", "description": "Delete users"},
    # Products
    {"action": "read", "subject": "Product", "description": "Read product information"},
    {"action": "manage", "subject": "Product", "description": "Create, update and delete products"},
    # Articles
    {"action": "create", "subject": "Article", "description": "Create articles"},
    {"action": "read", "subject": "Article", "description": "Read articles"},
    {"action": "edit", "subject": "Article", "description": "Edit articles"},
    {"action": "delete", "subject": "Article", "description": "Delete articles"},
    # Images
    {"action": "create", "subject": "Image", "description": "Upload images"},
    {"action": "read", "subject": "Image", "description": "List and view images"},
    {"action": "edit", "subject": "Image", "description": "Edit image metadata"},
    {"action": "delete", "subject": "Image", "description": "Delete images"},
]

# ────────────────────────────────────────────────────────────────────
# 3.  ROLE → PERMISSION MAPPING
#
#     `manage:X` is its own permission string.  It is NOT expanded
#     into create/read/edit/delete:X anywhere, so a role that must
#     pass an `edit:X` route needs `edit:X` listed here.
# ────────────────────────────────────────────────────────────────────
ROLE_PERMISSIONS: dict[str, list[str]] = {
    "ADMIN": [permission_key(p["action"], p["subject"]) for p in PERMISSIONS],
    "EDITOR": [
        "read:User",
        "manage:Product",
        "create:Article",
        "read:Article",
        "edit:Article",
    ],
    "USER": [
        "read:Product",
    ],
}


@dataclass
class SeedSummary:
    roles_created: int = 0
    permissions_created: int = 0
    links_created: int = 0
    skipped: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.roles_created or self.permissions_created or self.links_created)


# ────────────────────────────────────────────────────────────────────
# 4.  SEED FUNCTION (idempotent, single transaction)
# ────────────────────────────────────────────────────────────────────
async def seed(
    session: AsyncSession,
    roles: Sequence[Mapping[str, str]] = ROLES,
    permissions: Sequence[Mapping[str, str]] = PERMISSIONS,
    role_permission_map: Mapping[str, Sequence[str]] = ROLE_PERMISSIONS,
) -> SeedSummary:
    """Converge the catalog to the given tables and commit once."""
    summary = SeedSummary()

    try:
        # ── Roles ────────────────────────────────────────────────────
        existing_roles = (await session.execute(select(Role))).scalars().all()
        name_to_role: dict[str, Role] = {r.name: r for r in existing_roles}

        for rdata in roles:
            if rdata["name"] in name_to_role:
                continue
            role = Role(id=uuid.uuid4(), name=rdata["name"], description=rdata.get("description"))
            session.add(role)
            name_to_role[role.name] = role
            summary.roles_created += 1

        # ── Permissions ──────────────────────────────────────────────
        existing_perms = (await session.execute(select(Permission))).scalars().all()
        key_to_perm: dict[str, Permission] = {p.key: p for p in existing_perms}

        for pdata in permissions:
            key = permission_key(pdata["action"], pdata["subject"])
            if pdata["action"] not in _ACTIONS:
                logger.warning("Permission %s has an unknown action; skipped", key)
                summary.skipped.append(key)
                continue
            if key in key_to_perm:
                continue
            perm = Permission(
                id=uuid.uuid4(),
                action=pdata["action"],
                subject=pdata["subject"],
                description=pdata.get("description"),
            )
            session.add(perm)
            key_to_perm[key] = perm
            summary.permissions_created += 1

        await session.flush()  # ensure IDs are persisted before linking

        # ── Role → permission links ──────────────────────────────────
        link_rows = await session.execute(
            select(role_permissions.c.role_id, role_permissions.c.permission_id)
        )
        existing_links = {(row.role_id, row.permission_id) for row in link_rows}

        for role_name, keys in role_permission_map.items():
            role = name_to_role.get(role_name)
            if role is None:
                logger.warning("Role %s is not in the catalog; skipping its permissions", role_name)
                summary.skipped.append(role_name)
                continue

            for key in keys:
                perm = key_to_perm.get(key)
                if perm is None:
                    logger.warning("Unknown permission %s for role %s; skipped", key, role_name)
                    summary.skipped.append(f"{role_name}/{key}")
                    continue
                if (role.id, perm.id) in existing_links:
                    continue
                await session.execute(
                    insert(role_permissions).values(role_id=role.id, permission_id=perm.id)
                )
                existing_links.add((role.id, perm.id))
                summary.links_created += 1

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Catalog seeded: %d roles, %d permissions, %d links created, %d skipped",
        summary.roles_created,
        summary.permissions_created,
        summary.links_created,
        len(summary.skipped),
    )
    return summary


async def seed_at_startup(session_factory: async_sessionmaker[AsyncSession]) -> SeedSummary | None:
    """Seed from an app startup hook.

    Several workers may start at once; the one that loses the race on a
    unique constraint finds the catalog already written and carries on.
    """
    async with session_factory() as session:
        try:
            summary = await seed(session)
        except IntegrityError:
            logger.info("Role catalog was seeded concurrently by another worker.")
            return None
    logger.info("Role catalog seed complete.")
    return summary


# ────────────────────────────────────────────────────────────────────
# 5.  CLI entrypoint:  python -m app.rbac.permission_seed
# ────────────────────────────────────────────────────────────────────
async def main() -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, expire_on_commit=False)
    async with async_session() as session:
        await seed(session)
    await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
    asyncio.run(main())
