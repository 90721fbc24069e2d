"""
Tests for the can_mutate ownership/role predicate.
"""

import pytest

from core.exceptions import AuthorizationError
from models.recipe_models import Recipe, RecipeComment
from models.users import User, UserRole
from services.permissions import Action, can_mutate, ensure_can_mutate


def make_user(user_id, role=UserRole.USER):
    return User(id=user_id, name=user_id, email=f"{user_id}@example.com", password_hash="x", role=role)


@pytest.fixture
def owner():
    return make_user("owner")


@pytest.fixture
def stranger():
    return make_user("stranger")


@pytest.fixture
def admin():
    return make_user("admin", UserRole.ADMIN)


@pytest.fixture
def recipe(owner):
    return Recipe(id="r1", user_id=owner.id, title="Soup", ingredients=["water"], instructions=["boil"])


class TestRecipeRules:

    def test_owner_may_update_and_delete(self, owner, recipe):
        assert can_mutate(owner, recipe, Action.UPDATE)
        assert can_mutate(owner, recipe, Action.DELETE)

    def test_stranger_may_not(self, stranger, recipe):
        assert not can_mutate(stranger, recipe, Action.UPDATE)
        assert not can_mutate(stranger, recipe, Action.DELETE)

    def test_admin_may(self, admin, recipe):
        assert can_mutate(admin, recipe, Action.UPDATE)
        assert can_mutate(admin, recipe, Action.DELETE)

    def test_anonymous_may_not(self, recipe):
        assert not can_mutate(None, recipe, Action.UPDATE)


class TestCommentRules:

    def test_author_recipe_owner_and_admin(self, owner, stranger, admin, recipe):
        author = make_user("author")
        comment = RecipeComment(id="c1", recipe_id=recipe.id, user_id=author.id, text="hi", rating=5)

        assert can_mutate(author, comment, Action.DELETE, parent=recipe)
        assert can_mutate(owner, comment, Action.DELETE, parent=recipe)
        assert can_mutate(admin, comment, Action.DELETE, parent=recipe)
        assert not can_mutate(stranger, comment, Action.DELETE, parent=recipe)

    def test_recipe_owner_needs_parent(self, owner, recipe):
        comment = RecipeComment(id="c1", recipe_id=recipe.id, user_id="author", text="hi", rating=5)

        assert not can_mutate(owner, comment, Action.DELETE)


class TestUserRules:

    def test_self_and_admin_may_update(self, owner, stranger, admin):
        assert can_mutate(owner, owner, Action.UPDATE)
        assert can_mutate(admin, owner, Action.UPDATE)
        assert not can_mutate(stranger, owner, Action.UPDATE)

    def test_password_change_is_self_only(self, owner, admin):
        assert can_mutate(owner, owner, Action.CHANGE_PASSWORD)
        assert not can_mutate(admin, owner, Action.CHANGE_PASSWORD)


def test_ensure_can_mutate_raises_with_message(stranger, recipe):
    with pytest.raises(AuthorizationError) as excinfo:
        ensure_can_mutate(stranger, recipe, Action.DELETE, "Not authorized to delete this recipe")

    assert excinfo.value.status_code == 403
    assert excinfo.value.message == "Not authorized to delete this recipe"
