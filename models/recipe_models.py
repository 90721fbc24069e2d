"""
Recipedium Recipe Models
Database models for recipes and their likes, comments and diet tags
"""

from sqlalchemy import (
    Integer, String, Text, DateTime, ForeignKey, JSON, Enum, CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from enum import Enum as PyEnum
from typing import List, Optional
import uuid

from core.database import Base
from models.users import User
from utils.date_utils import utcnow

DEFAULT_IMAGE = "no-photo.jpg"


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Difficulty(str, PyEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class RecipeCategory(str, PyEnum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    DESSERT = "dessert"
    SNACK = "snack"
    APPETIZER = "appetizer"
    DRINK = "drink"
    SALAD = "salad"
    SOUP = "soup"
    SIDE = "side"


class RecipeLike(Base):
    """One like per (recipe, user); the unique constraint makes likes add-if-absent"""
    __tablename__ = "recipe_likes"
    __table_args__ = (UniqueConstraint("recipe_id", "user_id", name="uq_recipe_likes_recipe_user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    recipe_id: Mapped[str] = mapped_column(ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class RecipeComment(Base):
    """Comment with a 1-5 rating"""
    __tablename__ = "recipe_comments"
    __table_args__ = (CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    recipe_id: Mapped[str] = mapped_column(ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    author: Mapped[User] = relationship(lazy="selectin")


class RecipeDietTag(Base):
    """Free-form diet tag, kept in list order by position"""
    __tablename__ = "recipe_diet_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipe_id: Mapped[str] = mapped_column(ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    tag: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Recipe(Base):
    """Recipe model for storing recipe information"""
    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Ordered step lists
    ingredients: Mapped[List[str]] = mapped_column(JSON, nullable=False)
    instructions: Mapped[List[str]] = mapped_column(JSON, nullable=False)

    cooking_time: Mapped[int] = mapped_column(Integer, default=30, nullable=False)  # in minutes
    servings: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    difficulty: Mapped[Difficulty] = mapped_column(
        Enum(Difficulty, name="recipe_difficulty", values_callable=_enum_values),
        default=Difficulty.MEDIUM,
        nullable=False,
    )
    category: Mapped[RecipeCategory] = mapped_column(
        Enum(RecipeCategory, name="recipe_category", values_callable=_enum_values),
        default=RecipeCategory.DINNER,
        nullable=False,
        index=True,
    )
    image: Mapped[str] = mapped_column(Text, default=DEFAULT_IMAGE, nullable=False)

    # Owner is set once at creation
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    owner: Mapped[User] = relationship(lazy="selectin")
    likes: Mapped[List[RecipeLike]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=(RecipeLike.created_at.desc(), RecipeLike.id),
    )
    comments: Mapped[List[RecipeComment]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=(RecipeComment.created_at.desc(), RecipeComment.id),
    )
    diet_tags: Mapped[List[RecipeDietTag]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=RecipeDietTag.position,
    )

    def __repr__(self):
        return f"<Recipe(id={self.id}, title={self.title!r}, user_id={self.user_id})>"

    @property
    def diet(self) -> List[str]:
        return [t.tag for t in self.diet_tags]

    @diet.setter
    def diet(self, tags: List[str]) -> None:
        self.diet_tags = [RecipeDietTag(tag=tag, position=i) for i, tag in enumerate(tags)]

    @property
    def likes_count(self) -> int:
        return len(self.likes)

    @property
    def comments_count(self) -> int:
        return len(self.comments)

    def is_liked_by(self, user_id: str) -> bool:
        return any(like.user_id == user_id for like in self.likes)

    def find_comment(self, comment_id: str) -> Optional[RecipeComment]:
        return next((c for c in self.comments if c.id == comment_id), None)
