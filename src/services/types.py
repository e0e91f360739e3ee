from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SiteSelectors(BaseModel):
    """
    Per-site CSS selectors, keyed by the camelCase names stored in the
    `selectors` JSON column. Each value is one selector expression or a
    comma-joined list of alternatives.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    recipe_links: str = Field(alias="recipeLinks")
    title: str
    description: str
    ingredients: str
    instructions: str
    image: Optional[str] = None
    prep_time: Optional[str] = Field(default=None, alias="prepTime")
    cook_time: Optional[str] = Field(default=None, alias="cookTime")
    difficulty: Optional[str] = None
    servings: Optional[str] = None

    @field_validator("recipe_links", "title", "description", "ingredients", "instructions")
    @classmethod
    def _require_selector(cls, value: str) -> str:
        stripped = value.strip() if isinstance(value, str) else ""
        if not stripped:
            raise ValueError("selector must not be blank")
        return stripped

    @field_validator("image", "prep_time", "cook_time", "difficulty", "servings", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip() or None
        return value

    def to_json(self) -> dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class ExtractedRecipe:
    """A fully validated recipe pulled from one detail page. Undetected optional fields stay None."""
    title: str
    description: str
    ingredients: list[str]
    instructions: list[str]
    source_url: str
    image_url: Optional[str] = None
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    difficulty: Optional[Difficulty] = None
    servings: Optional[int] = None
