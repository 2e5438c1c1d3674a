"""
Catalog seeding: idempotence, partial catalogs and atomicity.
"""

import logging

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.core.config import Settings
from app.models import Permission, Role, role_permissions
from app.rbac import permission_seed
from app.rbac.permission_seed import PERMISSIONS, ROLE_PERMISSIONS, ROLES, seed, seed_at_startup


async def _snapshot(session_factory):
    async with session_factory() as s:
        roles = {(r.name, r.description) for r in (await s.execute(select(Role))).scalars()}
        perms = {(p.action, p.subject, p.description) for p in (await s.execute(select(Permission))).scalars()}
        links = (
            await s.execute(
                select(Role.name, Permission.action, Permission.subject)
                .join(role_permissions, role_permissions.c.role_id == Role.id)
                .join(Permission, Permission.id == role_permissions.c.permission_id)
            )
        ).all()
        return roles, perms, {tuple(row) for row in links}


async def _count(session_factory, model_or_table) -> int:
    async with session_factory() as s:
        return (await s.execute(select(func.count()).select_from(model_or_table))).scalar_one()


class TestCanonicalCatalog:
    async def test_first_run_creates_everything(self, session_factory):
        async with session_factory() as s:
            summary = await seed(s)

        assert summary.roles_created == 3
        assert summary.permissions_created == 14
        assert summary.links_created == 14 + 5 + 1
        assert summary.skipped == []

    async def test_second_run_is_a_noop(self, session_factory):
        async with session_factory() as s:
            await seed(s)
        before = await _snapshot(session_factory)

        async with session_factory() as s:
            second = await seed(s)

        assert not second.changed
        assert await _snapshot(session_factory) == before
        assert await _count(session_factory, Role) == 3
        assert await _count(session_factory, Permission) == 14
        assert await _count(session_factory, role_permissions) == 20

    async def test_existing_role_description_is_left_alone(self, session_factory):
        async with session_factory() as s:
            s.add(Role(name="ADMIN", description="hand-written"))
            await s.commit()

        async with session_factory() as s:
            summary = await seed(s)

        assert summary.roles_created == 2
        async with session_factory() as s:
            admin = (await s.execute(select(Role).where(Role.name == "ADMIN"))).scalar_one()
            assert admin.description == "hand-written"
            assert len(admin.permissions) == 14

    def test_admin_holds_every_permission(self):
        keys = {f"{p['action']}:{p['subject']}" for p in PERMISSIONS}
        assert set(ROLE_PERMISSIONS["ADMIN"]) == keys
        assert len(keys) == 14

    async def test_manage_is_not_expanded(self, session_factory):
        async with session_factory() as s:
            await seed(s)
        _, _, links = await _snapshot(session_factory)
        editor = {f"{a}:{sub}" for role, a, sub in links if role == "EDITOR"}
        assert "manage:Product" in editor
        assert "edit:Product" not in editor


class TestPartialCatalog:
    async def test_unknown_permission_key_is_skipped(self, session_factory, caplog):
        mapping = {"USER": ["read:Product", "fly:Spaceship"]}
        with caplog.at_level(logging.WARNING, logger="app.rbac.permission_seed"):
            async with session_factory() as s:
                summary = await seed(s, ROLES, PERMISSIONS, mapping)

        assert summary.links_created == 1
        assert summary.skipped == ["USER/fly:Spaceship"]
        assert "fly:Spaceship" in caplog.text

    async def test_role_missing_from_catalog_is_skipped(self, session_factory, caplog):
        mapping = {"GHOST": ["read:Product"], "USER": ["read:Product"]}
        with caplog.at_level(logging.WARNING, logger="app.rbac.permission_seed"):
            async with session_factory() as s:
                summary = await seed(s, ROLES, PERMISSIONS, mapping)

        assert summary.skipped == ["GHOST"]
        assert summary.links_created == 1
        assert "GHOST" in caplog.text

    async def test_unknown_action_is_skipped(self, session_factory, caplog):
        perms = [
            {"action": "read", "subject": "Product"},
            {"action": "fly", "subject": "Spaceship"},
        ]
        mapping = {"USER": ["read:Product", "fly:Spaceship"]}
        with caplog.at_level(logging.WARNING, logger="app.rbac.permission_seed"):
            async with session_factory() as s:
                summary = await seed(s, ROLES, perms, mapping)

        assert summary.permissions_created == 1
        assert summary.links_created == 1
        assert summary.skipped == ["fly:Spaceship", "USER/fly:Spaceship"]
        async with session_factory() as s:
            stored = {p.key for p in (await s.execute(select(Permission))).scalars()}
        assert stored == {"read:Product"}


class TestAtomicity:
    async def test_failure_rolls_back_whole_run(self, session_factory):
        broken = list(PERMISSIONS) + [{"action": "read", "subject": None}]

        async with session_factory() as s:
            with pytest.raises(IntegrityError):
                await seed(s, ROLES, broken, ROLE_PERMISSIONS)

        assert await _count(session_factory, Role) == 0
        assert await _count(session_factory, Permission) == 0
        assert await _count(session_factory, role_permissions) == 0


class TestSeedAtStartup:
    async def test_seeds_an_empty_catalog(self, session_factory):
        summary = await seed_at_startup(session_factory)

        assert summary is not None and summary.roles_created == 3
        assert await _count(session_factory, Role) == 3

    async def test_losing_a_concurrent_seed_is_not_fatal(self, session_factory, monkeypatch):
        async def raced(session, *args, **kwargs):
            raise IntegrityError("INSERT INTO roles", {}, Exception("UNIQUE constraint failed: roles.name"))

        monkeypatch.setattr(permission_seed, "seed", raced)

        assert await seed_at_startup(session_factory) is None

    def test_startup_seeding_is_off_by_default(self):
        assert Settings.model_fields["SEED_ON_STARTUP"].default is False
