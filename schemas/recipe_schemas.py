"""
Recipedium Recipe Schemas
Pydantic models for recipe payloads and the recipe document returned by the API
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import Field, field_validator

from models.recipe_models import Recipe, RecipeLike, RecipeComment, Difficulty, RecipeCategory, DEFAULT_IMAGE
from schemas.common import ApiModel, MAX_INT
from utils.date_utils import ensure_utc


def _clean_lines(value):
    """Strip entries and drop blank ones; the list itself must stay non-empty"""
    if isinstance(value, list):
        return [item.strip() if isinstance(item, str) else item for item in value
                if not (isinstance(item, str) and not item.strip())]
    return value


def _lower(value):
    return value.strip().lower() if isinstance(value, str) else value


class RecipeCreate(ApiModel):
    """Schema for a new recipe; also the full validation applied after an update merge"""
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    ingredients: List[str] = Field(..., min_length=1)
    instructions: List[str] = Field(..., min_length=1)
    cooking_time: int = Field(..., ge=0, le=MAX_INT)
    servings: int = Field(..., ge=1, le=MAX_INT)
    difficulty: Difficulty = Difficulty.MEDIUM
    category: RecipeCategory
    diet: List[str] = Field(default_factory=list)
    image: str = DEFAULT_IMAGE

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("ingredients", "instructions", mode="before")
    @classmethod
    def clean_lines(cls, v):
        return _clean_lines(v)

    @field_validator("difficulty", "category", mode="before")
    @classmethod
    def lower_choice(cls, v):
        return _lower(v)

    @field_validator("diet", mode="before")
    @classmethod
    def clean_diet(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return _clean_lines(v)

    @field_validator("image", mode="before")
    @classmethod
    def default_image(cls, v):
        return v or DEFAULT_IMAGE


class RecipeUpdate(ApiModel):
    """Partial recipe; merged over the stored recipe and re-validated as a whole"""
    title: Optional[str] = None
    description: Optional[str] = None
    ingredients: Optional[List[str]] = None
    instructions: Optional[List[str]] = None
    cooking_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    category: Optional[str] = None
    diet: Optional[List[str]] = None
    image: Optional[str] = None


class CommentCreate(ApiModel):
    text: str = Field(..., min_length=1)
    rating: Optional[int] = Field(default=None, ge=1, le=5)

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class UserSummary(ApiModel):
    id: str
    name: str


class LikeOut(ApiModel):
    id: str
    user: str
    created_at: datetime

    @classmethod
    def from_like(cls, like: RecipeLike) -> "LikeOut":
        return cls(id=like.id, user=like.user_id, created_at=ensure_utc(like.created_at))


class CommentOut(ApiModel):
    id: str
    text: str
    rating: int
    user: UserSummary
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: RecipeComment) -> "CommentOut":
        return cls(
            id=comment.id,
            text=comment.text,
            rating=comment.rating,
            user=UserSummary(id=comment.author.id, name=comment.author.name),
            created_at=ensure_utc(comment.created_at),
        )


class RecipeOut(ApiModel):
    """Recipe document with owner summary, likes and comments (newest first)"""
    id: str
    title: str
    description: Optional[str] = None
    ingredients: List[str]
    instructions: List[str]
    cooking_time: int
    servings: int
    difficulty: Difficulty
    category: RecipeCategory
    diet: List[str]
    image: str
    user: UserSummary
    likes: List[LikeOut]
    comments: List[CommentOut]
    created_at: datetime
    likes_count: int
    comments_count: int

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "RecipeOut":
        return cls(
            id=recipe.id,
            title=recipe.title,
            description=recipe.description,
            ingredients=list(recipe.ingredients),
            instructions=list(recipe.instructions),
            cooking_time=recipe.cooking_time,
            servings=recipe.servings,
            difficulty=recipe.difficulty,
            category=recipe.category,
            diet=recipe.diet,
            image=recipe.image,
            user=UserSummary(id=recipe.owner.id, name=recipe.owner.name),
            likes=[LikeOut.from_like(like) for like in recipe.likes],
            comments=[CommentOut.from_comment(comment) for comment in recipe.comments],
            created_at=ensure_utc(recipe.created_at),
            likes_count=recipe.likes_count,
            comments_count=recipe.comments_count,
        )


# Response field names accepted by ?select=
SELECTABLE_FIELDS = frozenset(
    field.alias or name for name, field in RecipeOut.model_fields.items()
)


def serialize_recipe(recipe: Recipe, fields: Optional[List[str]] = None) -> Dict[str, Any]:
    """JSON-ready recipe document, optionally narrowed to a field subset (id always kept)"""
    data = RecipeOut.from_recipe(recipe).model_dump(mode="json", by_alias=True)
    if fields:
        wanted = set(fields) | {"id"}
        data = {key: value for key, value in data.items() if key in wanted}
    return data
