"""
User service: administration of the User aggregate.

Role membership is never written here directly; it goes through the
identity service (``blog.identity``) via ``role_service``.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blog.identity import IdentityService
from blog.models import Article, User
from blog.schemas import EditUserViewModel
from blog.services import role_service

logger = logging.getLogger(__name__)


async def get_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.username))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    identity: IdentityService,
    *,
    username: str,
    email: str,
    full_name: str,
    password: str,
    roles: list[str] | None = None,
) -> User:
    """
    Create a user with a hashed password and the given role memberships.

    Username uniqueness is enforced by the database; an ``IntegrityError``
    propagates to the caller.
    """
    user = User(
        username=username,
        email=email,
        full_name=full_name,
        password_hash=identity.hash_password(password),
    )
    db.add(user)
    await db.flush()
    for role_name in roles or []:
        await identity.add_to_role(user.id, role_name)
    logger.info("User %s created", username)
    return user


async def update_user(
    db: AsyncSession, identity: IdentityService, user: User, data: EditUserViewModel
) -> User:
    """
    Apply the admin edit form to *user*.

    A non-empty password replaces the stored hash; an empty one keeps it.
    Role memberships are reconciled against ``data.roles``.
    """
    if data.password:
        user.password_hash = identity.hash_password(data.password)

    user.email = data.email
    user.full_name = data.full_name
    user.username = data.username
    await role_service.set_user_roles(identity, user, data.roles)

    await db.flush()
    logger.info("User %s updated", user.id)
    return user


async def delete_user(db: AsyncSession, identity: IdentityService, user: User) -> int:
    """
    Delete *user* together with every article they authored.

    Runs as ordered steps inside the caller's unit of work: the articles
    (with their tag associations), then the role memberships, then the
    user.  Returns the number of articles removed.
    """
    result = await db.execute(
        select(Article)
        .where(Article.author_id == user.id)
        .options(selectinload(Article.tag_links))
    )
    articles = result.scalars().all()
    for article in articles:
        await db.delete(article)
    await db.flush()

    await identity.remove_from_all_roles(user.id)

    await db.delete(user)
    await db.flush()
    logger.info("User %s deleted with %d article(s)", user.username, len(articles))
    return len(articles)
