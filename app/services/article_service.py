"""
Article service.

Articles belong to a company.  The company id always comes from the
caller's token; an article of another company is simply not found.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.article import Article


async def create_article(
    title: str,
    content: str,
    company_id: uuid.UUID,
    db: AsyncSession,
) -> Article:
    article = Article(id=uuid.uuid4(), title=title, content=content, company_id=company_id)
    db.add(article)
    await db.flush()
    return article


async def list_articles(company_id: uuid.UUID, db: AsyncSession) -> list[Article]:
    stmt = select(Article).where(Article.company_id == company_id).order_by(Article.created_at)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_article(article_id: uuid.UUID, company_id: uuid.UUID, db: AsyncSession) -> Article:
    stmt = select(Article).where(Article.id == article_id, Article.company_id == company_id)
    result = await db.execute(stmt)
    article = result.scalar_one_or_none()
    if article is None:
        raise NotFoundError(f"Article {article_id} not found")
    return article


async def update_article(
    article_id: uuid.UUID,
    company_id: uuid.UUID,
    db: AsyncSession,
    title: str | None = None,
    content: str | None = None,
) -> Article:
    article = await get_article(article_id, company_id, db)
    if title is not None:
        article.title = title
    if content is not None:
        article.content = content
    await db.flush()
    return article


async def delete_article(article_id: uuid.UUID, company_id: uuid.UUID, db: AsyncSession) -> None:
    article = await get_article(article_id, company_id, db)
    await db.delete(article)
    await db.flush()
