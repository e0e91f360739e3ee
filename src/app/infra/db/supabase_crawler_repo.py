from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Optional

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client, create_client

from src.app.domain.errors import (
    InvalidSelectorConfigError,
    RecipeRepositoryError,
    SiteConfigRepositoryError,
)
from src.app.domain.models import NewRecipe, PersistedRecipe, SiteConfig
from src.app.infra.db.base import RecipeRepository, SiteConfigRepository
from src.services.types import Difficulty, SiteSelectors

logger = logging.getLogger(__name__)

STORE_ERRORS = (APIError, httpx.HTTPError, ConnectionError, TimeoutError)

Row = dict[str, Any]


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def parse_selectors(site_name: str, raw: object) -> Optional[SiteSelectors]:
    """
    Validate a stored `selectors` blob.

    Returns None for an empty blob (selectors still to be detected) and
    raises InvalidSelectorConfigError for anything malformed.
    """
    if raw is None or raw == {} or raw == "":
        return None
    if not isinstance(raw, dict):
        raise InvalidSelectorConfigError(site_name, [f"expected an object, got {type(raw).__name__}"])
    try:
        return SiteSelectors.model_validate(raw)
    except ValidationError as error:
        messages = [
            f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
            for item in error.errors()
        ]
        raise InvalidSelectorConfigError(site_name, messages) from error


def _row_to_config(row: Row) -> SiteConfig:
    site_name = str(row["site_name"])
    return SiteConfig(
        id=int(row["id"]),
        site_name=site_name,
        site_url=str(row["site_url"]),
        selectors=parse_selectors(site_name, row.get("selectors")),
        enabled=bool(row.get("enabled", True)),
        last_crawl=_parse_datetime(row.get("last_crawl")),
    )


def _recipe_to_row(recipe: NewRecipe) -> Row:
    return {
        "title": recipe.title,
        "description": recipe.description,
        "ingredients": recipe.ingredients,
        "instructions": recipe.instructions,
        "cookware_type": recipe.cookware_type,
        "difficulty": recipe.difficulty.value,
        "prep_time": recipe.prep_time,
        "cook_time": recipe.cook_time,
        "servings": recipe.servings,
        "source_url": recipe.source_url,
        "source_name": recipe.source_name,
        "image_url": recipe.image_url,
    }


def _row_to_recipe(row: Row) -> PersistedRecipe:
    return PersistedRecipe(
        id=int(row["id"]) if row.get("id") is not None else None,
        title=str(row["title"]),
        description=str(row["description"]),
        ingredients=list(row.get("ingredients") or []),
        instructions=list(row.get("instructions") or []),
        source_url=str(row.get("source_url") or ""),
        source_name=str(row.get("source_name") or ""),
        cookware_type=str(row["cookware_type"]),
        difficulty=Difficulty(str(row["difficulty"])),
        prep_time=int(row["prep_time"]),
        cook_time=int(row["cook_time"]),
        servings=int(row["servings"]),
        image_url=row.get("image_url"),
        created_at=_parse_datetime(row.get("created_at")),
    )


def _create_supabase_client() -> Client:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required")
    return create_client(url, key)


class SupabaseSiteConfigRepository(SiteConfigRepository):
    TABLE_NAME = "crawler_configs"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()
        logger.info("SupabaseSiteConfigRepository initialized")

    def list_enabled(self) -> list[SiteConfig]:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").eq("enabled", True).order("id").execute()
        except STORE_ERRORS as error:
            logger.error("Error loading enabled site configs: %s", error)
            raise SiteConfigRepositoryError("list_enabled", str(error)) from error
        return self._rows_to_configs(result.data or [])

    def list_all(self) -> list[SiteConfig]:
        try:
            result = self._client.table(self.TABLE_NAME).select("*").order("id").execute()
        except STORE_ERRORS as error:
            raise SiteConfigRepositoryError("list_all", str(error)) from error
        return self._rows_to_configs(result.data or [])

    def _rows_to_configs(self, rows: list[Row]) -> list[SiteConfig]:
        configs = []
        for row in rows:
            try:
                configs.append(_row_to_config(row))
            except InvalidSelectorConfigError as error:
                logger.error("Skipping site config with invalid selectors: %s", error)
        return configs

    def get_by_name(self, site_name: str) -> SiteConfig | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("*")
                .eq("site_name", site_name)
                .limit(1)
                .execute()
            )
        except STORE_ERRORS as error:
            raise SiteConfigRepositoryError("get_by_name", str(error)) from error

        rows = result.data or []
        return _row_to_config(rows[0]) if rows else None

    def create(
        self,
        site_name: str,
        site_url: str,
        selectors: SiteSelectors,
        enabled: bool = True,
    ) -> SiteConfig:
        config_data = {
            "site_name": site_name,
            "site_url": site_url,
            "selectors": selectors.to_json(),
            "enabled": enabled,
        }
        try:
            result = self._client.table(self.TABLE_NAME).insert(config_data).execute()
        except STORE_ERRORS as error:
            raise SiteConfigRepositoryError("create", str(error)) from error

        if not result.data:
            raise SiteConfigRepositoryError("create", "insert returned no rows")

        config = _row_to_config(result.data[0])
        logger.info("Created site config: id=%s, site=%s", config.id, site_name)
        return config

    def update_last_crawl(self, config_id: int, crawled_at: datetime) -> None:
        self._update(config_id, {"last_crawl": crawled_at.isoformat()}, "update_last_crawl")

    def update_selectors(self, config_id: int, selectors: SiteSelectors) -> None:
        self._update(config_id, {"selectors": selectors.to_json()}, "update_selectors")

    def _update(self, config_id: int, update_data: Row, operation: str) -> None:
        try:
            self._client.table(self.TABLE_NAME).update(update_data).eq("id", config_id).execute()
        except STORE_ERRORS as error:
            logger.error("Error during %s for config %s: %s", operation, config_id, error)
            raise SiteConfigRepositoryError(operation, str(error)) from error


class SupabaseRecipeRepository(RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()
        logger.info("SupabaseRecipeRepository initialized")

    def exists(self, title: str, source_name: str) -> bool:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("id")
                .eq("title", title)
                .eq("source_name", source_name)
                .limit(1)
                .execute()
            )
        except STORE_ERRORS as error:
            raise RecipeRepositoryError("exists", str(error)) from error
        return bool(result.data)

    def insert(self, recipe: NewRecipe) -> PersistedRecipe:
        try:
            result = self._client.table(self.TABLE_NAME).insert(_recipe_to_row(recipe)).execute()
        except STORE_ERRORS as error:
            raise RecipeRepositoryError("insert", str(error)) from error

        if not result.data:
            raise RecipeRepositoryError("insert", "insert returned no rows")
        return _row_to_recipe(result.data[0])
