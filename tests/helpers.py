"""
Shared test engine and seed helpers.

Seed helpers open their own short session and commit, so data created by
a test is visible to the requests it makes afterwards.  Read helpers use a
fresh session so assertions see what the request actually committed.
"""
import re

from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from blog.config import settings
from blog.identity import SqlIdentityService
from blog.models import Article, Category, Tag, User
from blog.services import article_service, user_service

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PASSWORD = "Passw0rd!"

CSRF_RE = re.compile(r'name="__RequestVerificationToken" value="([^"]+)"')

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------

async def create_user(
    username: str,
    *,
    roles: tuple[str, ...] = ("User",),
    password: str = PASSWORD,
    full_name: str | None = None,
) -> User:
    async with async_session_test() as session:
        user = await user_service.create_user(
            session,
            SqlIdentityService(session),
            username=username,
            email=f"{username}@example.com",
            full_name=full_name or username.title(),
            password=password,
            roles=list(roles),
        )
        await session.commit()
        return user


async def create_category(name: str) -> Category:
    async with async_session_test() as session:
        category = Category(name=name)
        session.add(category)
        await session.commit()
        return category


async def create_article(
    author: User,
    category: Category,
    title: str = "An article",
    content: str = "Some content",
    tags: list[str] | None = None,
) -> Article:
    async with async_session_test() as session:
        article = Article(
            title=title,
            content=content,
            author_id=author.id,
            category_id=category.id,
        )
        article_service.attach_tags(article, await article_service.resolve_tags(session, tags or []))
        session.add(article)
        await session.commit()
        return article


# ---------------------------------------------------------------------------
# Reading back
# ---------------------------------------------------------------------------

async def fetch_article(article_id: int) -> Article | None:
    """Reload an article (author, category, tags) in a fresh session."""
    async with async_session_test() as session:
        return await article_service.get_article(session, article_id)


async def fetch_articles() -> list[Article]:
    async with async_session_test() as session:
        return await article_service.get_articles(session)


async def fetch_user(user_id: str) -> User | None:
    async with async_session_test() as session:
        return await user_service.get_user(session, user_id)


async def count_tags() -> int:
    async with async_session_test() as session:
        return (await session.execute(select(func.count()).select_from(Tag))).scalar_one()


async def user_roles(user_id: str) -> set[str]:
    async with async_session_test() as session:
        identity = SqlIdentityService(session)
        return {
            name for name in await identity.get_role_names()
            if await identity.is_in_role(user_id, name)
        }


def tag_names(article: Article) -> set[str]:
    return {tag.name for tag in article.tags}


def tag_list(article: Article) -> list[str]:
    """Tag names in the order the article keeps them."""
    return [tag.name for tag in article.tags]


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

async def get_csrf_token(client: AsyncClient, path: str = "/Account/Login") -> str:
    resp = await client.get(path)
    match = CSRF_RE.search(resp.text)
    assert match, f"no anti-forgery token on {path}"
    return match.group(1)


async def login(client: AsyncClient, username: str, password: str = PASSWORD) -> str:
    """Sign *username* in on *client*; return the session's anti-forgery token."""
    token = await get_csrf_token(client)
    resp = await client.post("/Account/Login", data={
        "username": username,
        "password": password,
        settings.CSRF_FIELD_NAME: token,
    })
    assert resp.status_code == 302, resp.text
    return token
