"""Adapteur lacartoons.com : pagination, séries, saisons/épisodes, lien vidéo externe."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace

from bs4.element import Tag

from cartooncrawl.core.adapters.base import AdapterRegistry
from cartooncrawl.core.errors import CrawlError, ShowExtractionError
from cartooncrawl.core.models import Episode, Season, Show
from cartooncrawl.core.schema import SiteSchema, check_landmark, get_schema
from cartooncrawl.core.utils.html import parse_document, select_attr, select_text
from cartooncrawl.core.utils.http import HttpSession
from cartooncrawl.core.utils.text import (
    origin_of,
    parse_int_soft,
    parse_int_strict,
    resolve_against,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaCartoonsAdapter:
    """
    Adapteur pour lacartoons.com. Les sélecteurs viennent du SiteSchema.

    Politique commune aux extracteurs : l'absence d'un élément structurel est
    tolérée (valeur par défaut), les échecs réseau/statut/parsing remontent.
    """

    id: str = "lacartoons"
    schema: SiteSchema = field(default_factory=get_schema)
    session: HttpSession = field(default_factory=HttpSession)
    strict_schema: bool = False
    episode_workers: int = 1

    def bind(self, **changes) -> LaCartoonsAdapter:
        """Copie configurée pour un crawl (session, schema, strict_schema, episode_workers)."""
        return replace(self, **changes)

    # ----- Pagination -----

    def last_page(self, catalog_url: str) -> int:
        """Numéro de la dernière page du catalogue (0 si pas de pagination)."""
        return self.last_page_from_html(self.session.get(catalog_url), catalog_url)

    def last_page_from_html(self, html: str, catalog_url: str) -> int:
        """
        Lit l'avant-dernier item de la pagination (le dernier est "suivant").

        Raises:
            FormatError: texte non numérique.
            SchemaDriftError: pagination absente en mode strict.
        """
        soup = parse_document(html, catalog_url)
        links = soup.select(self.schema.pagination_last)
        if not links:
            check_landmark(
                soup, self.schema.pagination_last, "pagination", strict=self.strict_schema, url=catalog_url
            )
            return 0
        return parse_int_strict(links[-1].get_text(), "last page", url=catalog_url)

    # ----- Catalogue -----

    def extract_shows(self, page_url: str) -> list[Show]:
        return self.extract_shows_from_html(self.session.get(page_url), page_url)

    def extract_shows_from_html(self, html: str, page_url: str) -> list[Show]:
        """
        Parse une page du catalogue.

        URLs (miniature, détail) résolues contre l'origine de la page elle-même.
        Une entrée sans href est ignorée ; tout autre champ manquant prend sa valeur par défaut.
        """
        soup = parse_document(html, page_url)
        check_landmark(soup, self.schema.catalog_container, "catalog", strict=self.strict_schema, url=page_url)
        origin = origin_of(page_url)
        shows: list[Show] = []
        for entry in soup.select(self.schema.catalog_entry):
            href = entry.get("href")
            if href is None:
                logger.debug("Catalog entry without href skipped on %s", page_url)
                continue
            src = select_attr(entry, self.schema.catalog_image, "src")
            shows.append(
                Show(
                    name=select_text(entry, self.schema.catalog_name),
                    marker=select_text(entry, self.schema.catalog_marker).strip(),
                    url=resolve_against(origin, href),
                    image_url=resolve_against(origin, src) if src is not None else "",
                    year=parse_int_soft(select_text(entry, self.schema.catalog_year)),
                    rate=parse_int_soft(select_text(entry, self.schema.catalog_rating)),
                )
            )
        return shows

    # ----- Saisons / épisodes -----

    def extract_seasons(self, show: Show, base_url: str) -> list[Season]:
        return self.extract_seasons_from_html(self.session.get(show.url), show, base_url)

    def extract_seasons_from_html(self, html: str, show: Show, base_url: str) -> list[Season]:
        """
        Construit les saisons d'une série puis résout le lien externe de chaque épisode.

        Les URLs internes sont résolues contre l'origine de `base_url` (racine du
        catalogue), pas contre celle de la série.

        Raises:
            ShowExtractionError: un épisode a échoué ; `seasons` contient le partiel.
        """
        soup = parse_document(html, show.url)
        check_landmark(
            soup, self.schema.episodes_container, "episodes", strict=self.strict_schema, url=show.url
        )
        origin = origin_of(base_url)

        headings = soup.select(self.schema.season_heading)
        seasons = [Season(name=h.get_text().strip()) for h in headings]

        # Chaque titre est apparié à la liste qui le suit directement : pas de corrélation par index
        pending: list[tuple[Season, Episode]] = []
        for heading, season in zip(headings, seasons):
            for chapter, link in enumerate(self._episode_links(heading), start=1):
                episode = Episode(
                    chapter=chapter,
                    name=link.get_text().strip(),
                    internal_url=resolve_against(origin, link.get("href") or ""),
                )
                pending.append((season, episode))

        if self.episode_workers > 1 and len(pending) > 1:
            self._resolve_parallel(show, seasons, pending)
        else:
            self._resolve_sequential(show, seasons, pending)
        return seasons

    def _episode_links(self, heading: Tag) -> list[Tag]:
        block = heading.find_next_sibling()
        if block is None or not block.css.match(self.schema.season_block):
            return []
        return block.select(f"{self.schema.season_list} {self.schema.episode_link}")

    def _resolve_sequential(
        self, show: Show, seasons: list[Season], pending: list[tuple[Season, Episode]]
    ) -> None:
        for season, episode in pending:
            try:
                episode.external_url = self.resolve_external(episode.internal_url)
            except CrawlError as e:
                raise ShowExtractionError(show, seasons, e) from e
            season.episodes.append(episode)

    def _resolve_parallel(
        self, show: Show, seasons: list[Season], pending: list[tuple[Season, Episode]]
    ) -> None:
        stop = threading.Event()
        worker = self.bind(session=self.session.with_cancel(stop.is_set))
        with ThreadPoolExecutor(max_workers=self.episode_workers, thread_name_prefix="episode") as pool:
            futures = [pool.submit(worker.resolve_external, ep.internal_url) for _, ep in pending]
            # Consommation dans l'ordre du document : le partiel s'arrête au premier échec
            for (season, episode), future in zip(pending, futures):
                try:
                    episode.external_url = future.result()
                except CrawlError as e:
                    stop.set()
                    for other in futures:
                        other.cancel()
                    raise ShowExtractionError(show, seasons, e) from e
                season.episodes.append(episode)

    # ----- Lien externe -----

    def resolve_external(self, internal_url: str) -> str:
        return self.resolve_external_from_html(self.session.get(internal_url), internal_url)

    def resolve_external_from_html(self, html: str, internal_url: str) -> str:
        """src du premier lecteur embarqué du conteneur de contenu ; "" s'il est absent."""
        soup = parse_document(html, internal_url)
        if not check_landmark(
            soup, self.schema.episode_content, "episode content", strict=self.strict_schema, url=internal_url
        ):
            return ""
        src = select_attr(soup, f"{self.schema.episode_content} {self.schema.episode_frame}", "src")
        if src is None:
            logger.debug("No embedded frame on %s", internal_url)
            return ""
        return src


# Enregistrement au chargement du module
AdapterRegistry.register(LaCartoonsAdapter())
