"""Profils de crawl (réseau + concurrence)."""

from .profiles import (
    DEFAULT_CRAWL_PROFILE_ID,
    DEFAULT_USER_AGENT,
    CrawlOptions,
    CrawlProfile,
    format_options_summary,
    get_profile,
    list_profile_ids,
    resolve_crawl_options,
    resolve_crawl_options_for_config,
)

__all__ = [
    "CrawlProfile",
    "CrawlOptions",
    "DEFAULT_USER_AGENT",
    "DEFAULT_CRAWL_PROFILE_ID",
    "format_options_summary",
    "get_profile",
    "list_profile_ids",
    "resolve_crawl_options",
    "resolve_crawl_options_for_config",
]
