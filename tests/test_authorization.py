"""
Edit/delete authorization for articles.

Only the author or an Admin may open the edit/delete views or submit
them.  The POST handlers repeat the check, so a forged direct submission
by another user is refused and leaves the article untouched.
"""
import pytest
from httpx import AsyncClient

from blog.config import settings
from blog.models import Category

from helpers import create_article, create_user, fetch_article, login, tag_names

CSRF = settings.CSRF_FIELD_NAME


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/Article/Edit/{id}", "/Article/Delete/{id}"])
async def test_non_author_gets_forbidden_views(async_client: AsyncClient, category: Category, path: str):
    author = await create_user("author")
    await create_user("intruder")
    article = await create_article(author, category)
    await login(async_client, "intruder")

    resp = await async_client.get(path.format(id=article.id))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_non_author_cannot_post_edit(async_client: AsyncClient, category: Category):
    author = await create_user("author")
    await create_user("intruder")
    article = await create_article(author, category, title="Original", tags=["python"])
    token = await login(async_client, "intruder")

    resp = await async_client.post("/Article/Edit", data={
        "id": str(article.id),
        "title": "Defaced",
        "content": "Defaced",
        "category_id": str(category.id),
        "tags": "spam",
        CSRF: token,
    })
    assert resp.status_code == 403

    unchanged = await fetch_article(article.id)
    assert unchanged.title == "Original"
    assert tag_names(unchanged) == {"python"}


@pytest.mark.asyncio
async def test_non_author_cannot_post_delete(async_client: AsyncClient, category: Category):
    author = await create_user("author")
    await create_user("intruder")
    article = await create_article(author, category, tags=["python"])
    token = await login(async_client, "intruder")

    resp = await async_client.post(f"/Article/Delete/{article.id}", data={CSRF: token})
    assert resp.status_code == 403

    still_there = await fetch_article(article.id)
    assert still_there is not None
    assert tag_names(still_there) == {"python"}


@pytest.mark.asyncio
async def test_admin_can_edit_any_article(async_client: AsyncClient, category: Category):
    author = await create_user("author")
    await create_user("boss", roles=("Admin",))
    article = await create_article(author, category, title="Original")
    token = await login(async_client, "boss")

    assert (await async_client.get(f"/Article/Edit/{article.id}")).status_code == 200
    resp = await async_client.post("/Article/Edit", data={
        "id": str(article.id),
        "title": "Moderated",
        "content": "Moderated",
        "category_id": str(category.id),
        CSRF: token,
    })
    assert resp.status_code == 302

    moderated = await fetch_article(article.id)
    assert moderated.title == "Moderated"
    assert moderated.author_id == author.id


@pytest.mark.asyncio
async def test_admin_can_delete_any_article(async_client: AsyncClient, category: Category):
    author = await create_user("author")
    await create_user("boss", roles=("Admin",))
    article = await create_article(author, category)
    token = await login(async_client, "boss")

    assert (await async_client.get(f"/Article/Delete/{article.id}")).status_code == 200
    resp = await async_client.post(f"/Article/Delete/{article.id}", data={CSRF: token})
    assert resp.status_code == 302
    assert await fetch_article(article.id) is None


@pytest.mark.asyncio
async def test_anonymous_edit_redirects_to_login(async_client: AsyncClient, category: Category):
    author = await create_user("author")
    article = await create_article(author, category)

    resp = await async_client.get(f"/Article/Edit/{article.id}")
    assert resp.status_code == 302
    assert resp.headers["location"].startswith("/Account/Login?ReturnUrl=")


@pytest.mark.asyncio
@pytest.mark.parametrize("path", [
    "/Article/Details/424242",
    "/Article/Edit/424242",
    "/Article/Delete/424242",
])
async def test_unknown_article_is_not_found(async_client: AsyncClient, path: str):
    """Unknown ids are a clean 404 on every single-article view, never a server error."""
    await create_user("writer")
    await login(async_client, "writer")

    resp = await async_client.get(path)
    assert resp.status_code == 404
