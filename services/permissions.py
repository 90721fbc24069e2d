"""
Recipedium Permissions
Single ownership/role predicate consulted by every mutating operation
"""

from enum import Enum
from typing import Optional, Union

from core.exceptions import AuthorizationError
from models.users import User
from models.recipe_models import Recipe, RecipeComment

Resource = Union[User, Recipe, RecipeComment]


class Action(str, Enum):
    UPDATE = "update"
    DELETE = "delete"
    CHANGE_PASSWORD = "change_password"


def can_mutate(
    caller: Optional[User],
    resource: Resource,
    action: Action,
    parent: Optional[Recipe] = None,
) -> bool:
    """
    Decide whether caller may apply action to resource

    Admins may do anything except change someone else's password.
    Otherwise recipes belong to their owner, users to themselves, and a
    comment may be removed by its author or by the owner of the parent recipe.
    """
    if caller is None:
        return False

    if action == Action.CHANGE_PASSWORD:
        return isinstance(resource, User) and resource.id == caller.id

    if caller.is_admin:
        return True

    if isinstance(resource, User):
        return resource.id == caller.id
    if isinstance(resource, Recipe):
        return resource.user_id == caller.id
    if isinstance(resource, RecipeComment):
        if resource.user_id == caller.id:
            return True
        return action == Action.DELETE and parent is not None and parent.user_id == caller.id

    return False


def ensure_can_mutate(
    caller: Optional[User],
    resource: Resource,
    action: Action,
    message: str = "User not authorized",
    parent: Optional[Recipe] = None,
) -> None:
    """Raise AuthorizationError unless can_mutate allows the action"""
    if not can_mutate(caller, resource, action, parent=parent):
        raise AuthorizationError(message)
