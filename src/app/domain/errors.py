from __future__ import annotations


class CrawlerError(Exception):
    pass


class CrawlAlreadyRunningError(CrawlerError):
    def __init__(self, message: str = "A crawl run is already in progress"):
        super().__init__(message)


class SiteConfigRepositoryError(CrawlerError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Site config repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class RecipeRepositoryError(CrawlerError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Recipe repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class InvalidSelectorConfigError(CrawlerError):
    def __init__(self, site_name: str, errors: list[str]):
        super().__init__(f"Invalid selectors for {site_name}: {'; '.join(errors)}")
        self.site_name = site_name
        self.errors = errors


class SiteAnalysisError(CrawlerError):
    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to analyze {url}: {reason}")
        self.url = url
        self.reason = reason


class WorkerConfigurationError(CrawlerError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Worker configuration errors: {', '.join(errors)}")
        self.errors = errors
