"""
Authorization
-------------
Access checks shared by every therapy tool.

A user can access a child if they are a caregiver in the child's family,
a therapist assigned to the child, or the request context already names
the child's family. The dispatcher never calls these; each tool does.
"""

from typing import List

from .errors import ChildNotFoundError, UnauthorizedError, UserIdRequiredError
from .registry import ToolContext
from .store import Child, TherapyStore


async def verify_child_access(store: TherapyStore, child_id: str, context: ToolContext) -> Child:
    """
    Return the child if the user may access it.

    Raises:
        UserIdRequiredError: context carries no user id
        ChildNotFoundError: no such child
        UnauthorizedError: the user has no relationship to the child
    """
    if not context.user_id:
        raise UserIdRequiredError()

    child = await store.get_child(child_id)
    if child is None:
        raise ChildNotFoundError(child_id)

    if await store.find_caregiver(child.family_id, context.user_id):
        return child

    therapist = await store.find_therapist(context.user_id)
    if therapist and await store.is_assigned(therapist.id, child.id):
        return child

    # Family already verified upstream
    if context.family_id and context.family_id == child.family_id:
        return child

    raise UnauthorizedError("You don't have access to this child")


async def has_child_access(store: TherapyStore, child_id: str, context: ToolContext) -> bool:
    try:
        await verify_child_access(store, child_id, context)
    except (UserIdRequiredError, ChildNotFoundError, UnauthorizedError):
        return False
    return True


async def accessible_child_ids(store: TherapyStore, context: ToolContext) -> List[str]:
    """Ids of every child the user may see, without duplicates."""
    if not context.user_id:
        raise UserIdRequiredError()

    ids: List[str] = [child.id for child in await store.children_for_user(context.user_id)]

    if context.family_id:
        for child in await store.children_in_family(context.family_id):
            if child.id not in ids:
                ids.append(child.id)

    return ids
