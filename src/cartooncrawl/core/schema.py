"""Schéma du site : table déclarative des sélecteurs CSS, versionnée.

Toute la dépendance au balisage du site distant est ici. Un changement de
balisage casse l'extraction soit silencieusement (champs tolérants, valeurs
par défaut) soit bruyamment (href, pagination, statut HTTP) ; `strict_schema`
transforme l'absence d'un repère structurel en SchemaDriftError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from bs4 import BeautifulSoup

from cartooncrawl.core.errors import SchemaDriftError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteSchema:
    """Sélecteurs structurels d'un site catalogue."""

    id: str
    version: int
    pagination_last: str
    """Lien du dernier numéro de page (avant-dernier item : le dernier est "suivant")."""
    catalog_container: str
    catalog_entry: str
    catalog_image: str
    catalog_name: str
    catalog_marker: str
    catalog_year: str
    catalog_rating: str
    episodes_container: str
    season_heading: str
    season_block: str
    """Élément frère qui suit immédiatement un titre de saison."""
    season_list: str
    """Relatif à season_block."""
    episode_link: str
    episode_content: str
    episode_frame: str
    """Relatif au conteneur de contenu de la page épisode."""


DEFAULT_SCHEMA_ID = "lacartoons_v1"

SCHEMAS: dict[str, SiteSchema] = {
    "lacartoons_v1": SiteSchema(
        id="lacartoons_v1",
        version=1,
        pagination_last=".paginacion-all-series ul.pagination nav ul.pagination li:nth-last-child(2) a",
        catalog_container=".conjuntos-series",
        catalog_entry=".conjuntos-series a",
        catalog_image="img",
        catalog_name=".informacion-serie div p.nombre-serie",
        catalog_marker=".informacion-serie div span.marcador-cartoon",
        catalog_year=".informacion-serie div span.marcador-ano",
        catalog_rating=".informacion-serie div span.valoracion",
        episodes_container=".contenedor-episondios",
        season_heading=".contenedor-episondios h4.estilo-temporada",
        season_block="div",
        season_list="ul",
        episode_link="li a",
        episode_content=".container",
        episode_frame="iframe",
    ),
}

SELECTOR_FIELDS = tuple(f.name for f in fields(SiteSchema) if f.name not in ("id", "version"))


def get_schema(schema_id: str | None = None) -> SiteSchema:
    """Résout un schéma depuis son ID (schéma par défaut si inconnu)."""
    if schema_id and schema_id in SCHEMAS:
        return SCHEMAS[schema_id]
    if schema_id:
        logger.warning("Unknown schema '%s', using %s", schema_id, DEFAULT_SCHEMA_ID)
    return SCHEMAS[DEFAULT_SCHEMA_ID]


def schema_with_overrides(base: SiteSchema, overrides: Mapping[str, Any] | None) -> SiteSchema:
    """
    Variante du schéma avec certains sélecteurs remplacés (table [selectors] du TOML).

    Raises:
        ValueError: clé inconnue ou valeur non textuelle.
    """
    if not overrides:
        return base
    changes: dict[str, str] = {}
    for key, value in overrides.items():
        if key not in SELECTOR_FIELDS:
            raise ValueError(
                f"Sélecteur inconnu '{key}'. Sélecteurs disponibles : {', '.join(SELECTOR_FIELDS)}"
            )
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Sélecteur '{key}' invalide : {value!r}")
        changes[key] = value.strip()
    return replace(base, id=f"{base.id}+custom", **changes)


def check_landmark(
    soup: BeautifulSoup,
    selector: str,
    landmark: str,
    *,
    strict: bool,
    url: str | None = None,
) -> bool:
    """
    Vérifie qu'un repère structurel est présent.

    Returns:
        True si présent. En mode non strict, False si absent.

    Raises:
        SchemaDriftError: repère absent en mode strict.
    """
    if soup.select_one(selector) is not None:
        return True
    if strict:
        raise SchemaDriftError(landmark, selector, url=url)
    logger.debug("Landmark '%s' missing on %s (%s)", landmark, url or "page", selector)
    return False
