# src/app/domain/models.py
"""
Domain models for the recipe crawler.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from src.services.types import Difficulty, ExtractedRecipe, SiteSelectors

DEFAULT_COOKWARE_TYPE = "skillet"
DEFAULT_DIFFICULTY = Difficulty.MEDIUM
DEFAULT_PREP_TIME_MINUTES = 30
DEFAULT_COOK_TIME_MINUTES = 30
DEFAULT_SERVINGS = 4


class LinkOutcome(str, Enum):
    """What happened to one discovered recipe link."""
    ADDED = "ADDED"
    DUPLICATE = "DUPLICATE"
    FAILED = "FAILED"


@dataclass
class SiteConfig:
    """
    One crawled website.
    `selectors` is None when the stored blob was empty and still needs detection.
    """
    id: int
    site_name: str
    site_url: str
    selectors: Optional[SiteSelectors]
    enabled: bool = True
    last_crawl: Optional[datetime] = None


@dataclass
class NewRecipe:
    """An extracted recipe with insert-time defaults applied, ready to persist."""
    title: str
    description: str
    ingredients: list[str]
    instructions: list[str]
    source_url: str
    source_name: str
    cookware_type: str
    difficulty: Difficulty
    prep_time: int
    cook_time: int
    servings: int
    image_url: Optional[str] = None

    @classmethod
    def from_extracted(cls, recipe: ExtractedRecipe, source_name: str) -> "NewRecipe":
        return cls(
            title=recipe.title,
            description=recipe.description,
            ingredients=list(recipe.ingredients),
            instructions=list(recipe.instructions),
            source_url=recipe.source_url,
            source_name=source_name,
            cookware_type=DEFAULT_COOKWARE_TYPE,
            difficulty=recipe.difficulty or DEFAULT_DIFFICULTY,
            prep_time=recipe.prep_time if recipe.prep_time is not None else DEFAULT_PREP_TIME_MINUTES,
            cook_time=recipe.cook_time if recipe.cook_time is not None else DEFAULT_COOK_TIME_MINUTES,
            servings=recipe.servings if recipe.servings is not None else DEFAULT_SERVINGS,
            image_url=recipe.image_url,
        )


@dataclass
class PersistedRecipe(NewRecipe):
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass
class SiteCrawlResult:
    """Outcome of one site's pass within a run."""
    site_name: str
    links_found: int = 0
    recipes_added: int = 0
    duplicates_skipped: int = 0
    links_failed: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def record(self, outcome: LinkOutcome) -> None:
        if outcome is LinkOutcome.ADDED:
            self.recipes_added += 1
        elif outcome is LinkOutcome.DUPLICATE:
            self.duplicates_skipped += 1
        else:
            self.links_failed += 1


@dataclass
class CrawlSummary:
    started_at: datetime
    finished_at: Optional[datetime] = None
    cancelled: bool = False
    sites: list[SiteCrawlResult] = field(default_factory=list)

    @property
    def sites_processed(self) -> int:
        return len(self.sites)

    @property
    def sites_failed(self) -> int:
        return sum(1 for site in self.sites if site.failed)

    @property
    def recipes_added(self) -> int:
        return sum(site.recipes_added for site in self.sites)

    @property
    def duplicates_skipped(self) -> int:
        return sum(site.duplicates_skipped for site in self.sites)

    @property
    def links_failed(self) -> int:
        return sum(site.links_failed for site in self.sites)
