# src/app/infra/db/base.py
"""
Abstract storage interfaces the crawler reads from and writes to.
The crawler never talks to a database directly, only through these.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.app.domain.models import NewRecipe, PersistedRecipe, SiteConfig
from src.services.types import SiteSelectors


class SiteConfigRepository(ABC):
    """
    Abstract interface for crawler site configurations.

    Implementations:
    - SupabaseSiteConfigRepository: `crawler_configs` table in Supabase
    """

    @abstractmethod
    def list_enabled(self) -> list[SiteConfig]:
        """
        Get every config with enabled = true.

        Raises:
            SiteConfigRepositoryError: if the store cannot be read
        """
        pass

    @abstractmethod
    def list_all(self) -> list[SiteConfig]:
        pass

    @abstractmethod
    def get_by_name(self, site_name: str) -> Optional[SiteConfig]:
        pass

    @abstractmethod
    def create(
        self,
        site_name: str,
        site_url: str,
        selectors: SiteSelectors,
        enabled: bool = True,
    ) -> SiteConfig:
        """
        Store a new site configuration.

        Args:
            site_name: Unique display name, also the recipes' source name
            site_url: Listing page URL
            selectors: Validated selector set
            enabled: Whether scheduled runs include the site

        Returns:
            The created SiteConfig
        """
        pass

    @abstractmethod
    def update_last_crawl(self, config_id: int, crawled_at: datetime) -> None:
        pass

    @abstractmethod
    def update_selectors(self, config_id: int, selectors: SiteSelectors) -> None:
        pass


class RecipeRepository(ABC):
    """
    Abstract interface for crawled recipe rows.
    """

    @abstractmethod
    def exists(self, title: str, source_name: str) -> bool:
        """
        Check the dedup key.

        Args:
            title: Exact recipe title
            source_name: Owning site's name

        Returns:
            True if a recipe with this (title, source_name) is stored
        """
        pass

    @abstractmethod
    def insert(self, recipe: NewRecipe) -> PersistedRecipe:
        pass
