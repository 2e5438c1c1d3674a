"""
Credential service & token issuer.
"""

import uuid

import pytest
from jose import jwt
from sqlalchemy import func, insert, select

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, UnauthorizedError
from app.models import Company, User, user_roles
from app.services import auth_service

PASSWORD = "correct-horse-battery"


def decode(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


async def register_acme(db, username="alice", email="alice@acme.example.com"):
    return await auth_service.register(
        company_name="Acme",
        username=username,
        email=email,
        password=PASSWORD,
        name="Alice",
        db=db,
    )


class TestRegister:
    async def test_requires_seeded_admin_role(self, db):
        with pytest.raises(NotFoundError):
            await register_acme(db)
        assert (await db.execute(select(func.count()).select_from(Company))).scalar_one() == 0

    async def test_creates_company_admin_and_binding(self, db, seeded):
        user = await register_acme(db)

        assert user.company_id is not None
        assert user.password_hash != PASSWORD
        view = await auth_service.load_auth_view("alice", user.company_id, db)
        assert view.roles == ("ADMIN",)

    async def test_duplicate_email_rolls_back_company(self, db, seeded):
        await register_acme(db)

        with pytest.raises(ConflictError):
            await register_acme(db, username="other")

        companies = (await db.execute(select(func.count()).select_from(Company))).scalar_one()
        users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
        assert companies == 1
        assert users == 1


class TestRegisterUserByAdmin:
    async def test_defaults_to_user_role(self, db, seeded):
        admin = await register_acme(db)
        bob = await auth_service.register_user_by_admin(
            "bob", "bob@acme.example.com", PASSWORD, "Bob", None, admin.company_id, db
        )

        assert bob.company_id == admin.company_id
        view = await auth_service.load_auth_view("bob", admin.company_id, db)
        assert view.roles == ("USER",)
        assert view.permissions == frozenset({"read:Product"})

    async def test_unknown_role_is_not_found(self, db, seeded):
        admin = await register_acme(db)
        with pytest.raises(NotFoundError):
            await auth_service.register_user_by_admin(
                "bob", "bob@acme.example.com", PASSWORD, "Bob", "WIZARD", admin.company_id, db
            )

    async def test_duplicate_username_in_company_conflicts(self, db, seeded):
        admin = await register_acme(db)
        with pytest.raises(ConflictError):
            await auth_service.register_user_by_admin(
                "alice", "alice2@acme.example.com", PASSWORD, "Alice 2", None, admin.company_id, db
            )

    async def test_same_username_in_other_company_is_fine(self, db, seeded):
        await register_acme(db)
        globex = await auth_service.register(
            company_name="Globex",
            username="hank",
            email="hank@globex.example.com",
            password=PASSWORD,
            name="Hank",
            db=db,
        )
        alice_at_globex = await auth_service.register_user_by_admin(
            "alice", "alice@globex.example.com", PASSWORD, "Alice G", None, globex.company_id, db
        )
        assert alice_at_globex.company_id == globex.company_id


class TestLogin:
    async def test_wrong_password_and_unknown_user_look_the_same(self, db, seeded):
        admin = await register_acme(db)

        with pytest.raises(UnauthorizedError) as wrong_password:
            await auth_service.login("alice", "not-the-password", admin.company_id, db)
        with pytest.raises(UnauthorizedError) as unknown_user:
            await auth_service.login("mallory", PASSWORD, admin.company_id, db)
        with pytest.raises(UnauthorizedError) as wrong_company:
            await auth_service.login("alice", PASSWORD, uuid.uuid4(), db)

        assert wrong_password.value.detail == unknown_user.value.detail == wrong_company.value.detail
        assert wrong_password.value.status_code == unknown_user.value.status_code == 401

    async def test_claims_shape(self, db, seeded):
        admin = await register_acme(db)
        claims = decode(await auth_service.login("alice", PASSWORD, admin.company_id, db))

        assert claims["sub"] == str(admin.id)
        assert claims["username"] == "alice"
        assert claims["companyId"] == str(admin.company_id)
        assert claims["roles"] == ["ADMIN"]
        assert len(claims["permissions"]) == 14
        assert claims["exp"] > claims["iat"]

    async def test_permissions_are_the_deduplicated_union(self, db, seeded):
        admin = await register_acme(db)
        editor_role = await auth_service.get_role_by_name("EDITOR", db)
        await db.execute(insert(user_roles).values(user_id=admin.id, role_id=editor_role.id))
        await db.commit()

        claims = decode(await auth_service.login("alice", PASSWORD, admin.company_id, db))

        assert sorted(claims["roles"]) == ["ADMIN", "EDITOR"]
        perms = claims["permissions"]
        assert len(perms) == len(set(perms))
        # EDITOR grants are a subset of ADMIN's
        assert set(perms) >= {"read:User", "manage:Product", "read:Article"}
        assert perms.count("read:Article") == 1
        assert len(perms) == 14

    async def test_user_without_roles_gets_empty_sets(self, db, seeded):
        admin = await register_acme(db)
        await db.execute(user_roles.delete().where(user_roles.c.user_id == admin.id))
        await db.commit()

        claims = decode(await auth_service.login("alice", PASSWORD, admin.company_id, db))
        assert claims["roles"] == []
        assert claims["permissions"] == []
