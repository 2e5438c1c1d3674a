"""
Article controller — tenant-scoped CRUD.

Every route is gated by a literal ``*:Article`` permission string from
the token.  Reading a single article only needs authentication.
"""

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.rbac.decorators import requires_permissions
from app.rbac.dependencies import enforce_route_guards
from app.schemas import ArticleCreate, ArticleOut, ArticleUpdate, TokenClaims
from app.services import article_service

router = APIRouter(prefix="/articles", tags=["Articles"], dependencies=[Depends(enforce_route_guards)])


@router.post("", response_model=ArticleOut, status_code=status.HTTP_201_CREATED)
@requires_permissions("create:Article")
async def create_article(
    body: ArticleCreate,
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.create_article(body.title, body.content, claims.company_id, db)
    return ArticleOut.model_validate(article)


@router.get("", response_model=list[ArticleOut])
@requires_permissions("read:Article")
async def list_articles(
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    articles = await article_service.list_articles(claims.company_id, db)
    return [ArticleOut.model_validate(a) for a in articles]


@router.get("/{article_id}", response_model=ArticleOut)
async def get_article(
    article_id: uuid.UUID,
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.get_article(article_id, claims.company_id, db)
    return ArticleOut.model_validate(article)


@router.put("/{article_id}", response_model=ArticleOut)
@requires_permissions("edit:Article")
async def update_article(
    article_id: uuid.UUID,
    body: ArticleUpdate,
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.update_article(
        article_id,
        claims.company_id,
        db,
        title=body.title,
        content=body.content,
    )
    return ArticleOut.model_validate(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
@requires_permissions("delete:Article")
async def delete_article(
    article_id: uuid.UUID,
    claims: TokenClaims = Depends(enforce_route_guards),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(article_id, claims.company_id, db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
