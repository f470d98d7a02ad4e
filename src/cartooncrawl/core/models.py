"""Modèle de données : dataclasses typées pour séries, saisons, épisodes et rapport de crawl."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FailurePolicy(str, Enum):
    """Politique d'échec d'une étape du crawl."""

    ABORT = "abort"
    SKIP_AND_REPORT = "skip_and_report"


@dataclass
class Episode:
    """Un épisode jouable : page interne au site + source vidéo externe."""

    chapter: int
    """Position 1-based dans la liste d'épisodes de la saison."""
    name: str
    internal_url: str
    external_url: str = ""
    """Vide tant que non résolu, ou si la page ne contient pas de lecteur."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "chapter": self.chapter,
            "name": self.name,
            "internal_url": self.internal_url,
            "external_url": self.external_url,
        }


@dataclass
class Season:
    """Saison nommée, épisodes dans l'ordre du document."""

    name: str
    episodes: list[Episode] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "episodes": [e.to_dict() for e in self.episodes]}


@dataclass
class Show:
    """Entrée du catalogue. Identité = URL de détail absolue."""

    name: str
    marker: str
    url: str
    image_url: str = ""
    year: int = 0
    rate: int = 0
    seasons: list[Season] | None = None
    """None tant que l'extraction des saisons n'a pas tourné."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "marker": self.marker,
            "url": self.url,
            "image_url": self.image_url,
            "year": self.year,
            "rate": self.rate,
            "seasons": None if self.seasons is None else [s.to_dict() for s in self.seasons],
        }

    def __str__(self) -> str:
        return (
            f"Name: {self.name} Marker: {self.marker} Url: {self.url} "
            f"Year: {self.year} Image Url: {self.image_url}"
        )


@dataclass
class ShowResult:
    """Résultat de l'extraction des saisons d'une série (position catalogue conservée)."""

    index: int
    show: Show
    seasons: list[Season] = field(default_factory=list)
    error: Exception | None = None
    """Erreur de la série ; les saisons partielles restent disponibles."""

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class CrawlReport:
    """Agrégat remis à la couche de présentation."""

    catalog_url: str
    last_page: int = 0
    page_urls: list[str] = field(default_factory=list)
    catalog: list[Show] = field(default_factory=list)
    """Toutes les séries listées, dans l'ordre du catalogue."""
    results: list[ShowResult] = field(default_factory=list)
    page_errors: dict[str, Exception] = field(default_factory=dict)
    """Pages ignorées (politique SKIP_AND_REPORT) : URL -> erreur."""
    error: Exception | None = None
    """Erreur qui a arrêté le crawl (None si terminé)."""
    cancelled: bool = False

    @property
    def aborted(self) -> bool:
        return self.error is not None or self.cancelled

    @property
    def shows(self) -> list[Show]:
        return [r.show for r in self.results]

    @property
    def failed_shows(self) -> list[ShowResult]:
        return [r for r in self.results if r.failed]
