"""Configuration du crawl : dataclass + lecture/écriture TOML (crawl.toml)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from cartooncrawl.core.acquisition.profiles import (
    DEFAULT_CRAWL_PROFILE_ID,
    CrawlOptions,
    resolve_crawl_options_for_config,
)
from cartooncrawl.core.models import FailurePolicy
from cartooncrawl.core.schema import DEFAULT_SCHEMA_ID, SiteSchema, get_schema, schema_with_overrides

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = "https://www.lacartoons.com"
CONFIG_FILENAME = "crawl.toml"


@dataclass(frozen=True)
class CrawlConfig:
    """Configuration d'un crawl de catalogue."""

    catalog_url: str = DEFAULT_CATALOG_URL
    """Racine du catalogue ; sert aussi d'origine pour les URLs internes d'épisodes."""
    source_id: str = "lacartoons"
    """Identifiant de l'adapteur (registre)."""
    profile_id: str = DEFAULT_CRAWL_PROFILE_ID
    user_agent: str | None = None
    timeout_s: float | None = None
    """None = timeout du profil ; <= 0 = pas de timeout."""
    page_workers: int | None = None
    show_workers: int | None = None
    episode_workers: int | None = None
    max_shows: int | None = None
    """Nombre maximal de séries dont on extrait les saisons (None = toutes)."""
    schema_id: str = DEFAULT_SCHEMA_ID
    strict_schema: bool = False
    page_failure_policy: FailurePolicy = FailurePolicy.ABORT
    show_failure_policy: FailurePolicy = FailurePolicy.SKIP_AND_REPORT
    selectors: dict[str, str] = field(default_factory=dict)
    """Surcharges de sélecteurs (table [selectors])."""

    def options(self) -> CrawlOptions:
        return resolve_crawl_options_for_config(self)

    def schema(self) -> SiteSchema:
        return schema_with_overrides(get_schema(self.schema_id), self.selectors)


_FIELD_NAMES = {f.name for f in fields(CrawlConfig)}
_INT_FIELDS = {"page_workers", "show_workers", "episode_workers", "max_shows"}


def read_toml(path: Path) -> dict[str, Any]:
    """Lit un fichier TOML (stdlib tomllib en 3.11+)."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore
    with open(path, "rb") as file_obj:
        return tomllib.load(file_obj)


def _policy(value: Any, key: str) -> FailurePolicy:
    try:
        return FailurePolicy(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in FailurePolicy)
        raise ValueError(f"{key} invalide : {value!r} (valeurs possibles : {allowed})") from None


def config_from_dict(data: dict[str, Any]) -> CrawlConfig:
    """Construit un CrawlConfig ; clés inconnues ignorées (warning), valeurs invalides -> ValueError."""
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in _FIELD_NAMES:
            logger.warning("Clé de configuration inconnue ignorée : %s", key)
            continue
        if key in ("page_failure_policy", "show_failure_policy"):
            value = _policy(value, key)
        elif key in _INT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{key} doit être un entier : {value!r}")
            if key == "max_shows" and value <= 0:
                value = None
        elif key == "timeout_s":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"timeout_s doit être un nombre : {value!r}")
            value = float(value)
        elif key == "strict_schema":
            value = bool(value)
        elif key == "selectors":
            if not isinstance(value, dict):
                raise ValueError("[selectors] doit être une table")
            value = {str(k): v for k, v in value.items()}
        elif key == "catalog_url":
            value = str(value).strip()
            if not value:
                raise ValueError("catalog_url ne peut pas être vide")
        kwargs[key] = value
    config = CrawlConfig(**kwargs)
    # Valide les surcharges de sélecteurs dès le chargement
    config.schema()
    return config


def load_crawl_config(path: Path) -> CrawlConfig:
    """Charge crawl.toml ; fichier absent -> configuration par défaut."""
    path = Path(path)
    if not path.exists():
        logger.info("Pas de %s, configuration par défaut", path)
        return CrawlConfig()
    return config_from_dict(read_toml(path))


def write_default_config(path: Path) -> None:
    """Écrit un crawl.toml commenté avec les valeurs par défaut (écriture manuelle, pas de dépendance)."""
    defaults = CrawlConfig()
    lines = [
        "# Configuration cartooncrawl",
        f'catalog_url = "{defaults.catalog_url}"',
        f'source_id = "{defaults.source_id}"',
        f'profile_id = "{defaults.profile_id}"',
        f'schema_id = "{defaults.schema_id}"',
        f"strict_schema = {str(defaults.strict_schema).lower()}",
        f'page_failure_policy = "{defaults.page_failure_policy.value}"',
        f'show_failure_policy = "{defaults.show_failure_policy.value}"',
        "# max_shows = 4",
        "# timeout_s = 30.0",
        "",
        "[selectors]",
        '# episode_frame = "iframe"',
    ]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
