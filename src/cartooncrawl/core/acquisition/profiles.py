"""Profils de crawl (timeout réseau + largeur des pools de workers)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CrawlProfile:
    """Profil de crawl: réglages HTTP et concurrence par défaut."""

    id: str
    label: str
    timeout_s: float
    page_workers: int
    show_workers: int
    episode_workers: int
    description: str


@dataclass(frozen=True)
class CrawlOptions:
    """Options résolues pour un crawl."""

    user_agent: str
    timeout_s: float | None
    page_workers: int
    show_workers: int
    episode_workers: int
    crawl_profile_id: str


DEFAULT_CRAWL_PROFILE_ID = "sequential_v1"
DEFAULT_USER_AGENT = "CartoonCrawl/0.1"

PROFILES: dict[str, CrawlProfile] = {
    "sequential_v1": CrawlProfile(
        id="sequential_v1",
        label="Sequential",
        timeout_s=30.0,
        page_workers=1,
        show_workers=1,
        episode_workers=1,
        description="Une requête à la fois, dans l'ordre du catalogue.",
    ),
    "balanced_v1": CrawlProfile(
        id="balanced_v1",
        label="Balanced",
        timeout_s=30.0,
        page_workers=3,
        show_workers=3,
        episode_workers=3,
        description="Pools bornés à 3 workers par niveau.",
    ),
    "fast_v1": CrawlProfile(
        id="fast_v1",
        label="Fast",
        timeout_s=20.0,
        page_workers=5,
        show_workers=5,
        episode_workers=5,
        description="Pools bornés à 5 workers, à utiliser si la source est tolérante.",
    ),
}


def list_profile_ids() -> list[str]:
    """Retourne les IDs de profils de crawl disponibles."""
    return list(PROFILES.keys())


def get_profile(profile_id: str | None) -> CrawlProfile:
    """Résout un profil de crawl depuis son ID."""
    if profile_id and profile_id in PROFILES:
        return PROFILES[profile_id]
    return PROFILES[DEFAULT_CRAWL_PROFILE_ID]


def _workers(value: int | None, default: int) -> int:
    if value is None:
        return default
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n >= 1 else default


def resolve_crawl_options(
    *,
    crawl_profile_id: str | None,
    user_agent: str | None = None,
    timeout_s: float | None = None,
    page_workers: int | None = None,
    show_workers: int | None = None,
    episode_workers: int | None = None,
) -> CrawlOptions:
    """Construit les options effectives à partir du profil + overrides config.

    timeout_s <= 0 désactive le timeout (comportement historique : aucune limite).
    """
    profile = get_profile(crawl_profile_id)

    if timeout_s is None:
        resolved_timeout: float | None = profile.timeout_s
    else:
        resolved_timeout = float(timeout_s) if float(timeout_s) > 0 else None

    base_ua = (user_agent or DEFAULT_USER_AGENT).strip() or DEFAULT_USER_AGENT
    ua_marker = f"crawl={profile.id}"
    resolved_user_agent = base_ua if ua_marker in base_ua else f"{base_ua} ({ua_marker})"

    return CrawlOptions(
        user_agent=resolved_user_agent,
        timeout_s=resolved_timeout,
        page_workers=_workers(page_workers, profile.page_workers),
        show_workers=_workers(show_workers, profile.show_workers),
        episode_workers=_workers(episode_workers, profile.episode_workers),
        crawl_profile_id=profile.id,
    )


def resolve_crawl_options_for_config(config: Any) -> CrawlOptions:
    """Résout les options à partir d'un CrawlConfig-like."""
    return resolve_crawl_options(
        crawl_profile_id=getattr(config, "profile_id", None),
        user_agent=getattr(config, "user_agent", None),
        timeout_s=getattr(config, "timeout_s", None),
        page_workers=getattr(config, "page_workers", None),
        show_workers=getattr(config, "show_workers", None),
        episode_workers=getattr(config, "episode_workers", None),
    )


def format_options_summary(options: CrawlOptions) -> str:
    """Résumé une ligne des options effectives (pour les logs)."""
    timeout = "none" if options.timeout_s is None else f"{options.timeout_s:g}s"
    return (
        f"profile={options.crawl_profile_id} timeout={timeout} "
        f"workers(pages={options.page_workers}, shows={options.show_workers}, "
        f"episodes={options.episode_workers}) ua={options.user_agent!r}"
    )
