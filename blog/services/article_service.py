"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Eager loading via ``joinedload`` (many-to-one: author, category) and
  ``selectinload`` (many-to-many: tags) is used throughout; every
  relationship is mapped ``lazy="noload"``.  The ``unique()`` call is
  required after any query that uses ``joinedload``.
- Single-article lookups use ``scalar_one_or_none`` so an unknown id
  yields ``None`` (a 404 in the router), never an exception.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from blog.models import Article, ArticleTag, Category, Tag, User
from blog.schemas import ArticleViewModel
from blog.tags import parse_tag_names

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tag resolution helpers (used by create / update)
# ---------------------------------------------------------------------------

async def resolve_tags(db: AsyncSession, tag_names: list[str]) -> list[Tag]:
    """
    Return Tag ORM instances for each name in *tag_names*, creating any
    that do not yet exist.  All inserts are flushed within the caller's
    transaction.
    """
    tags: list[Tag] = []
    for name in tag_names:
        result = await db.execute(select(Tag).where(Tag.name == name))
        tag = result.scalar_one_or_none()
        if not tag:
            tag = Tag(name=name)
            db.add(tag)
            await db.flush()
        tags.append(tag)
    return tags


def attach_tags(article: Article, tags: list[Tag]) -> None:
    """
    Make *article*'s tags exactly *tags*, in that order.

    Links for tags the article already has are kept and only renumbered,
    so re-saving an unchanged tag list writes no new association rows.
    *article* must have its ``tag_links`` loaded.
    """
    current = {link.tag_id: link for link in article.tag_links}
    links: list[ArticleTag] = []
    for position, tag in enumerate(tags):
        link = current.get(tag.id) or ArticleTag(tag=tag)
        link.position = position
        links.append(link)
    article.tag_links = links


async def set_article_tags(db: AsyncSession, article: Article, raw_tags: str | None) -> None:
    """Replace the article's tags with the ones named in *raw_tags*."""
    attach_tags(article, await resolve_tags(db, parse_tag_names(raw_tags)))


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------

def is_authorized_to_edit(article: Article, principal: User | None, is_admin: bool) -> bool:
    """Admins may edit anything; everyone else only their own articles."""
    if principal is None:
        return False
    if is_admin:
        return True
    return article.author is not None and article.author.username == principal.username


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_categories(db: AsyncSession) -> list[Category]:
    """All categories ordered by name, for the category select box."""
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())


async def get_category(db: AsyncSession, category_id: int) -> Category | None:
    result = await db.execute(select(Category).where(Category.id == category_id))
    return result.scalar_one_or_none()


async def get_articles(db: AsyncSession) -> list[Article]:
    """Return every article with author, category and tags loaded.  No paging."""
    q = select(Article).options(
        joinedload(Article.author),
        joinedload(Article.category),
        selectinload(Article.tag_links),
    )
    result = await db.execute(q)
    return list(result.unique().scalars().all())


async def get_article(db: AsyncSession, article_id: int) -> Article | None:
    """
    Return the article identified by *article_id* with author, category
    and tags loaded, or None when it does not exist.
    """
    q = (
        select(Article)
        .where(Article.id == article_id)
        .options(
            joinedload(Article.author),
            joinedload(Article.category),
            selectinload(Article.tag_links),
        )
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


async def create_article(db: AsyncSession, data: ArticleViewModel, author: User) -> Article:
    """
    Create a new article owned by *author*.

    Tags are attached in the order they first appear in ``data.tags``.
    """
    article = Article(
        title=data.title,
        content=data.content,
        category_id=data.category_id,
        author_id=author.id,
    )
    await set_article_tags(db, article, data.tags)

    db.add(article)
    await db.flush()
    logger.info("Article %d created by %s", article.id, author.username)
    return article


async def update_article(db: AsyncSession, article: Article, data: ArticleViewModel) -> Article:
    """
    Overwrite title, content and category and recompute the tag set.

    The author is never changed.  *article* must have been loaded with its
    tags (``get_article``) so the old associations are replaced, not kept.
    """
    article.title = data.title
    article.content = data.content
    article.category_id = data.category_id
    await set_article_tags(db, article, data.tags)

    await db.flush()
    logger.info("Article %d updated", article.id)
    return article


async def delete_article(db: AsyncSession, article: Article) -> None:
    """
    Delete *article* and its tag associations.  Tag rows are kept even
    when no other article references them.
    """
    await db.delete(article)
    await db.flush()
    logger.info("Article %d deleted", article.id)
