"""
Manual check: suggest selectors for a recipe site and preview the first recipe.

    python scripts/analyze_site.py https://www.lodgecastiron.com/discover/recipes
"""
import asyncio
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv, find_dotenv

from src.services.errors import FetchFailedError, InvalidURLError
from src.services.fetcher import DEFAULT_USER_AGENT, ResilientFetcher
from src.services.site_analyzer import SiteAnalyzer


async def analyze(url: str) -> None:
    user_agent = os.getenv("CRAWLER_USER_AGENT", DEFAULT_USER_AGENT)
    async with ResilientFetcher(user_agent=user_agent) as fetcher:
        analysis = await SiteAnalyzer(fetcher).analyze(url)

    suggested = analysis.suggested_config
    print(f"Site name: {suggested.site_name}")
    print("\n--- Suggested selectors ---")
    print(json.dumps(suggested.selectors.to_json(), indent=2))
    print("\n--- Sample data ---")
    print(json.dumps(asdict(analysis.sample_data), indent=2, ensure_ascii=False))


def main() -> None:
    if len(sys.argv) != 2:
        raise SystemExit("usage: analyze_site.py <listing-url>")

    env_path = find_dotenv()
    if env_path:
        print(f".env found at: {env_path}")
        load_dotenv(dotenv_path=env_path)

    try:
        asyncio.run(analyze(sys.argv[1]))
    except (FetchFailedError, InvalidURLError) as e:
        print(f"\nCould not analyze site: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
