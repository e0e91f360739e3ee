# src/app/services/site_seeding.py
"""
Built-in site configurations inserted when missing.
"""
from __future__ import annotations

import logging

from src.app.domain.models import SiteConfig
from src.app.infra.db.base import SiteConfigRepository
from src.services.types import SiteSelectors

logger = logging.getLogger("crawler.seeding")

DEFAULT_SITE_CONFIGS: tuple[dict, ...] = (
    {
        "site_name": "Lodge Cast Iron",
        "site_url": "https://www.lodgecastiron.com/discover/recipes",
        "selectors": {
            "recipeLinks": ".recipe-card__link",
            "title": ".recipe-detail__title",
            "description": ".recipe-detail__description",
            "ingredients": ".recipe-detail__ingredients-list li",
            "instructions": ".recipe-detail__instructions-list li",
        },
        "enabled": True,
    },
)


def seed_default_site_configs(
    repository: SiteConfigRepository,
    defaults: tuple[dict, ...] = DEFAULT_SITE_CONFIGS,
) -> list[SiteConfig]:
    """Create each default whose site name is not stored yet. Returns the ones created."""
    created: list[SiteConfig] = []
    for default in defaults:
        if repository.get_by_name(default["site_name"]) is not None:
            continue
        config = repository.create(
            site_name=default["site_name"],
            site_url=default["site_url"],
            selectors=SiteSelectors.model_validate(default["selectors"]),
            enabled=default.get("enabled", True),
        )
        logger.info("seed.created site=%s", config.site_name)
        created.append(config)
    return created
