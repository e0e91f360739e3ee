from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from src.app.domain.models import CrawlSummary, SiteConfig, SiteCrawlResult
from src.services.site_analyzer import SiteAnalysis
from src.services.types import SiteSelectors


class SiteConfigResponse(BaseModel):
    id: int
    siteName: str
    siteUrl: str
    selectors: dict[str, str] = Field(default_factory=dict)
    enabled: bool
    lastCrawl: Optional[str] = None

    @classmethod
    def from_domain(cls, config: SiteConfig) -> "SiteConfigResponse":
        return cls(
            id=config.id,
            siteName=config.site_name,
            siteUrl=config.site_url,
            selectors=config.selectors.to_json() if config.selectors else {},
            enabled=config.enabled,
            lastCrawl=config.last_crawl.isoformat() if config.last_crawl else None,
        )


class SiteConfigCreateRequest(BaseModel):
    siteName: str = Field(min_length=1)
    siteUrl: str = Field(pattern=r"^https?://")
    selectors: SiteSelectors
    enabled: bool = True


class CrawlStartedResponse(BaseModel):
    message: str


class SiteCrawlResultResponse(BaseModel):
    siteName: str
    linksFound: int
    recipesAdded: int
    duplicatesSkipped: int
    linksFailed: int
    error: Optional[str] = None

    @classmethod
    def from_domain(cls, result: SiteCrawlResult) -> "SiteCrawlResultResponse":
        return cls(
            siteName=result.site_name,
            linksFound=result.links_found,
            recipesAdded=result.recipes_added,
            duplicatesSkipped=result.duplicates_skipped,
            linksFailed=result.links_failed,
            error=result.error,
        )


class CrawlSummaryResponse(BaseModel):
    sitesProcessed: int
    sitesFailed: int
    recipesAdded: int
    duplicatesSkipped: int
    linksFailed: int
    cancelled: bool = False
    startedAt: str
    finishedAt: Optional[str] = None
    sites: list[SiteCrawlResultResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, summary: CrawlSummary) -> "CrawlSummaryResponse":
        return cls(
            sitesProcessed=summary.sites_processed,
            sitesFailed=summary.sites_failed,
            recipesAdded=summary.recipes_added,
            duplicatesSkipped=summary.duplicates_skipped,
            linksFailed=summary.links_failed,
            cancelled=summary.cancelled,
            startedAt=summary.started_at.isoformat(),
            finishedAt=summary.finished_at.isoformat() if summary.finished_at else None,
            sites=[SiteCrawlResultResponse.from_domain(site) for site in summary.sites],
        )


class AnalyzeRequest(BaseModel):
    url: str = Field(pattern=r"^https?://")


class SuggestedConfigResponse(BaseModel):
    siteName: str
    siteUrl: str
    selectors: dict[str, str]


class SampleDataResponse(BaseModel):
    recipeLinks: int
    sampleTitle: Optional[str] = None
    sampleDescription: Optional[str] = None
    sampleIngredients: list[str] = Field(default_factory=list)
    sampleInstructions: list[str] = Field(default_factory=list)
    sampleImage: Optional[str] = None


class AnalysisResponse(BaseModel):
    suggestedConfig: SuggestedConfigResponse
    sampleData: SampleDataResponse

    @classmethod
    def from_domain(cls, analysis: SiteAnalysis) -> "AnalysisResponse":
        suggested = analysis.suggested_config
        sample = analysis.sample_data
        return cls(
            suggestedConfig=SuggestedConfigResponse(
                siteName=suggested.site_name,
                siteUrl=suggested.site_url,
                selectors=suggested.selectors.to_json(),
            ),
            sampleData=SampleDataResponse(
                recipeLinks=sample.recipe_links,
                sampleTitle=sample.sample_title,
                sampleDescription=sample.sample_description,
                sampleIngredients=sample.sample_ingredients,
                sampleInstructions=sample.sample_instructions,
                sampleImage=sample.sample_image,
            ),
        )
