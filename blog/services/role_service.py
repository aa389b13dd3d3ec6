"""
Role membership helpers shared by the article and user handlers.

Everything here goes through an ``IdentityService`` so the same logic
runs against the SQL implementation and against in-memory doubles.
"""
from typing import Iterable

from blog.config import settings
from blog.identity import IdentityService
from blog.models import User
from blog.schemas import RoleSelection


async def is_admin(identity: IdentityService, user: User | None) -> bool:
    if user is None:
        return False
    return await identity.is_in_role(user.id, settings.ADMIN_ROLE)


async def get_admin_usernames(identity: IdentityService, users: Iterable[User]) -> set[str]:
    """Usernames of the users holding the Admin role (one lookup per user)."""
    admins: set[str] = set()
    for user in users:
        if await identity.is_in_role(user.id, settings.ADMIN_ROLE):
            admins.add(user.username)
    return admins


async def get_user_roles(identity: IdentityService, user: User) -> list[RoleSelection]:
    """One selection entry per role, sorted by role name."""
    selections = []
    for role_name in sorted(await identity.get_role_names()):
        selections.append(
            RoleSelection(
                name=role_name,
                is_selected=await identity.is_in_role(user.id, role_name),
            )
        )
    return selections


async def set_user_roles(
    identity: IdentityService, user: User, selections: Iterable[RoleSelection]
) -> None:
    """
    Make *user*'s memberships match *selections*.

    Only roles that differ are touched, so applying the same selections
    twice is a no-op the second time.
    """
    for role in selections:
        in_role = await identity.is_in_role(user.id, role.name)
        if role.is_selected and not in_role:
            await identity.add_to_role(user.id, role.name)
        elif not role.is_selected and in_role:
            await identity.remove_from_role(user.id, role.name)
