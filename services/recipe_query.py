"""
Recipedium Recipe Query Service
Turns listing query parameters into filtered, sorted, paginated recipe pages

Grammar:
    search=<text>              case-insensitive match on title or description
    category=<name>|all        case-insensitive category filter
    diet=<tag>|all             recipes tagged with the diet
    <field>=<v>                equality on a filterable field
    <field>[gt|gte|lt|lte]=<v> range comparison (numeric and date fields)
    <field>[in]=<a,b,c>        membership
    select=a,b                 response fields (id is always included)
    sort=a,-b                  sort keys, "-" for descending
    page=<n>&limit=<n>         1-indexed paging
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core.config import settings
from core.exceptions import ValidationError
from models.recipe_models import Recipe, RecipeLike, RecipeComment, RecipeDietTag, Difficulty, RecipeCategory
from schemas.common import MAX_INT
from schemas.recipe_schemas import SELECTABLE_FIELDS
from utils.date_utils import parse_datetime

RESERVED_PARAMS = frozenset({"select", "sort", "page", "limit"})
# Sent by existing web clients; recipes carry no featured flag
IGNORED_PARAMS = frozenset({"featured"})
ALL = "all"

_FILTER_KEY = re.compile(r"^(?P<field>[A-Za-z_]+)(?:\[(?P<op>[a-z]+)\])?$")

_OPERATORS: Dict[str, Callable[[Any, Any], ColumnElement]] = {
    "eq": lambda column, value: column == value,
    "gt": lambda column, value: column > value,
    "gte": lambda column, value: column >= value,
    "lt": lambda column, value: column < value,
    "lte": lambda column, value: column <= value,
}
_RANGE_OPERATORS = frozenset({"gt", "gte", "lt", "lte"})


def _as_int(value: str) -> int:
    number = int(value.strip())
    if abs(number) > MAX_INT:
        raise ValueError("out of range")
    return number


def _as_choice(enum_cls):
    def coerce(value: str):
        return enum_cls(value.strip().lower())
    return coerce


@dataclass(frozen=True)
class FilterField:
    column: Any
    coerce: Callable[[str], Any] = str
    ordered: bool = False


FILTER_FIELDS: Dict[str, FilterField] = {
    "title": FilterField(Recipe.title),
    "description": FilterField(Recipe.description),
    "cookingTime": FilterField(Recipe.cooking_time, _as_int, ordered=True),
    "servings": FilterField(Recipe.servings, _as_int, ordered=True),
    "difficulty": FilterField(Recipe.difficulty, _as_choice(Difficulty)),
    "image": FilterField(Recipe.image),
    "user": FilterField(Recipe.user_id),
    "createdAt": FilterField(Recipe.created_at, parse_datetime, ordered=True),
}

_likes_count = (
    select(func.count(RecipeLike.id))
    .where(RecipeLike.recipe_id == Recipe.id)
    .correlate(Recipe)
    .scalar_subquery()
)
_comments_count = (
    select(func.count(RecipeComment.id))
    .where(RecipeComment.recipe_id == Recipe.id)
    .correlate(Recipe)
    .scalar_subquery()
)

SORT_FIELDS: Dict[str, Any] = {
    "createdAt": Recipe.created_at,
    "title": Recipe.title,
    "cookingTime": Recipe.cooking_time,
    "servings": Recipe.servings,
    "difficulty": Recipe.difficulty,
    "category": Recipe.category,
    "likesCount": _likes_count,
    "likes": _likes_count,
    "commentsCount": _comments_count,
    "comments": _comments_count,
}


def likes_count_expression():
    """Correlated per-recipe like count, usable in ORDER BY"""
    return _likes_count


@dataclass
class RecipeQuery:
    conditions: List[ColumnElement] = field(default_factory=list)
    sort: List[Tuple[str, bool]] = field(default_factory=list)  # (field, descending)
    fields: Optional[List[str]] = None
    page: int = 1
    limit: int = settings.DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def order_by(self) -> List[Any]:
        if not self.sort:
            return [Recipe.created_at.desc(), Recipe.id]
        clauses = []
        for name, descending in self.sort:
            column = SORT_FIELDS[name]
            clauses.append(column.desc() if descending else column.asc())
        clauses.append(Recipe.id)
        return clauses


@dataclass
class RecipePage:
    items: List[Recipe]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def next(self) -> Optional[Dict[str, int]]:
        if self.page * self.limit < self.total:
            return {"page": self.page + 1, "limit": self.limit}
        return None

    @property
    def prev(self) -> Optional[Dict[str, int]]:
        if self.page > 1:
            return {"page": self.page - 1, "limit": self.limit}
        return None

    def pagination(self) -> Dict[str, Dict[str, int]]:
        links = {}
        if self.next:
            links["next"] = self.next
        if self.prev:
            links["prev"] = self.prev
        return links


def _split(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_positive_int(name: str, raw: str, maximum: int = MAX_INT) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError.for_field(name, f"{name} must be an integer")
    if value < 1:
        raise ValidationError.for_field(name, f"{name} must be greater than 0")
    if value > maximum:
        raise ValidationError.for_field(name, f"{name} cannot exceed {maximum}")
    return value


def _field_condition(name: str, operator: str, raw: str) -> ColumnElement:
    filter_field = FILTER_FIELDS.get(name)
    if filter_field is None:
        raise ValidationError.for_field(name, f"Unknown filter field '{name}'")

    if operator in _RANGE_OPERATORS and not filter_field.ordered:
        raise ValidationError.for_field(name, f"Operator '{operator}' is not supported for {name}")

    try:
        if operator == "in":
            return filter_field.column.in_([filter_field.coerce(part) for part in _split(raw)])
        return _OPERATORS[operator](filter_field.column, filter_field.coerce(raw))
    except ValueError:
        raise ValidationError.for_field(name, f"Invalid value for {name}: {raw!r}")


def _category_condition(raw: str, operator: str) -> Optional[ColumnElement]:
    if operator not in ("eq", "in"):
        raise ValidationError.for_field("category", f"Operator '{operator}' is not supported for category")
    values = _split(raw.lower())
    if not values or ALL in values:
        return None
    try:
        return Recipe.category.in_([RecipeCategory(value) for value in values])
    except ValueError:
        raise ValidationError.for_field("category", f"Invalid value for category: {raw!r}")


def _diet_condition(raw: str) -> Optional[ColumnElement]:
    tag = raw.strip().lower()
    if not tag or tag == ALL:
        return None
    return Recipe.diet_tags.any(func.lower(RecipeDietTag.tag) == tag)


def _search_condition(raw: str) -> Optional[ColumnElement]:
    term = raw.strip().lower()
    if not term:
        return None
    return or_(
        func.lower(Recipe.title).contains(term, autoescape=True),
        func.lower(func.coalesce(Recipe.description, "")).contains(term, autoescape=True),
    )


def parse_recipe_query(
    params: Iterable[Tuple[str, str]],
    max_limit: Optional[int] = None,
) -> RecipeQuery:
    """
    Parse (key, value) query pairs into a RecipeQuery

    Raises:
        ValidationError: On unknown fields, unsupported operators or bad values
    """
    max_limit = max_limit or settings.MAX_PAGE_SIZE
    query = RecipeQuery()

    for key, raw in params:
        if key in IGNORED_PARAMS:
            continue
        if key == "select":
            fields = _split(raw)
            unknown = [name for name in fields if name not in SELECTABLE_FIELDS]
            if unknown:
                raise ValidationError.for_field("select", f"Unknown field(s): {', '.join(unknown)}")
            query.fields = fields or None
        elif key == "sort":
            query.sort = []
            for name in _split(raw):
                descending = name.startswith("-")
                name = name.lstrip("-")
                if name not in SORT_FIELDS:
                    raise ValidationError.for_field("sort", f"Cannot sort by '{name}'")
                query.sort.append((name, descending))
        elif key == "page":
            query.page = _parse_positive_int("page", raw)
        elif key == "limit":
            query.limit = _parse_positive_int("limit", raw, max_limit)
        elif key == "search":
            condition = _search_condition(raw)
            if condition is not None:
                query.conditions.append(condition)
        elif key == "diet":
            condition = _diet_condition(raw)
            if condition is not None:
                query.conditions.append(condition)
        else:
            match = _FILTER_KEY.match(key)
            if not match:
                raise ValidationError.for_field(key, f"Invalid query parameter '{key}'")
            name, operator = match.group("field"), match.group("op") or "eq"
            if operator not in _OPERATORS and operator != "in":
                raise ValidationError.for_field(name, f"Unknown operator '{operator}'")
            if name == "category":
                condition = _category_condition(raw, operator)
                if condition is not None:
                    query.conditions.append(condition)
            else:
                query.conditions.append(_field_condition(name, operator, raw))

    return query


async def fetch_recipe_page(
    db: AsyncSession,
    query: RecipeQuery,
    scope: Sequence[ColumnElement] = (),
) -> RecipePage:
    """Run a parsed query, optionally narrowed by extra scope conditions"""
    conditions = [*query.conditions, *scope]

    total = await db.scalar(select(func.count(Recipe.id)).where(*conditions))

    result = await db.execute(
        select(Recipe)
        .where(*conditions)
        .order_by(*query.order_by())
        .offset(query.offset)
        .limit(query.limit)
    )

    return RecipePage(items=list(result.scalars().all()), total=total or 0, page=query.page, limit=query.limit)


def owned_by(user_id: str) -> ColumnElement:
    return Recipe.user_id == user_id


def liked_by(user_id: str) -> ColumnElement:
    return Recipe.likes.any(RecipeLike.user_id == user_id)
