"""
Root entrypoint, run with:
    uvicorn main:app --reload

Apply migrations and seed the role catalog first:
    alembic upgrade head
    python -m app.rbac.permission_seed
"""

from app.main import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    from app.core.config import settings

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
