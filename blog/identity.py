"""
Identity service: role membership and password hashing.

Handlers and services depend on the ``IdentityService`` protocol only;
``SqlIdentityService`` is the production implementation over the
``roles`` / ``user_roles`` tables, and tests can substitute any object
with the same methods.
"""
import logging
from typing import Protocol

from fastapi import Depends
from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from blog import security
from blog.database import get_db
from blog.models import Role, user_roles

logger = logging.getLogger(__name__)


class UnknownRoleError(LookupError):
    """Raised when a membership change names a role that does not exist."""

    def __init__(self, role_name: str) -> None:
        super().__init__(f"Role {role_name!r} does not exist")
        self.role_name = role_name


class IdentityService(Protocol):
    async def get_role_names(self) -> list[str]: ...

    async def is_in_role(self, user_id: str, role_name: str) -> bool: ...

    async def add_to_role(self, user_id: str, role_name: str) -> None: ...

    async def remove_from_role(self, user_id: str, role_name: str) -> None: ...

    async def remove_from_all_roles(self, user_id: str) -> None: ...

    def hash_password(self, password: str) -> str: ...

    def verify_password(self, password: str, password_hash: str) -> bool: ...


class SqlIdentityService:
    """Role membership stored in ``user_roles``, written with Core statements."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _role_id(self, role_name: str) -> int:
        result = await self.db.execute(select(Role.id).where(Role.name == role_name))
        role_id = result.scalar_one_or_none()
        if role_id is None:
            raise UnknownRoleError(role_name)
        return role_id

    async def get_role_names(self) -> list[str]:
        result = await self.db.execute(select(Role.name).order_by(Role.name))
        return list(result.scalars().all())

    async def is_in_role(self, user_id: str, role_name: str) -> bool:
        q = (
            select(user_roles.c.user_id)
            .select_from(user_roles.join(Role, Role.id == user_roles.c.role_id))
            .where(user_roles.c.user_id == user_id, Role.name == role_name)
        )
        result = await self.db.execute(q)
        return result.first() is not None

    async def add_to_role(self, user_id: str, role_name: str) -> None:
        role_id = await self._role_id(role_name)
        if await self.is_in_role(user_id, role_name):
            return
        await self.db.execute(insert(user_roles).values(user_id=user_id, role_id=role_id))
        logger.info("User %s added to role %s", user_id, role_name)

    async def remove_from_role(self, user_id: str, role_name: str) -> None:
        role_id = await self._role_id(role_name)
        result = await self.db.execute(
            delete(user_roles).where(
                user_roles.c.user_id == user_id,
                user_roles.c.role_id == role_id,
            )
        )
        if result.rowcount:
            logger.info("User %s removed from role %s", user_id, role_name)

    async def remove_from_all_roles(self, user_id: str) -> None:
        await self.db.execute(delete(user_roles).where(user_roles.c.user_id == user_id))

    def hash_password(self, password: str) -> str:
        return security.hash_password(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return security.verify_password(password, password_hash)


async def get_identity(db: AsyncSession = Depends(get_db)) -> IdentityService:
    """FastAPI dependency: identity service bound to the request's unit of work."""
    return SqlIdentityService(db)
