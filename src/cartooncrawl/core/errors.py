"""Hiérarchie d'erreurs du crawl (réseau, statut HTTP, parsing, format, schéma)."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cartooncrawl.core.models import Season, Show


class CrawlError(Exception):
    """Erreur de base du crawl."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class NetworkError(CrawlError):
    """Échec de transport (DNS, connexion, timeout)."""


class HttpStatusError(CrawlError):
    """Réponse HTTP autre que 200. Le corps n'est pas lu."""

    def __init__(self, code: int, url: str | None = None):
        self.code = code
        super().__init__(f"GET request failed with status code {code}", url=url)


class ParseError(CrawlError):
    """Le corps récupéré n'a pas pu être parsé en HTML."""


class FormatError(CrawlError):
    """Champ numérique non parsable (nombre de pages)."""

    def __init__(self, field: str, value: str, url: str | None = None):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value!r}", url=url)


class SchemaDriftError(CrawlError):
    """Repère structurel attendu absent de la page (mode strict)."""

    def __init__(self, landmark: str, selector: str, url: str | None = None):
        self.landmark = landmark
        self.selector = selector
        super().__init__(f"Landmark '{landmark}' not found ({selector})", url=url)


class CrawlCancelled(CrawlError):
    """Annulation demandée avant le lancement d'une requête."""


class ShowExtractionError(CrawlError):
    """
    Extraction des saisons interrompue pour une série.

    `seasons` contient les saisons déjà construites ; la cause est dans `__cause__`.
    """

    def __init__(self, show: Show, seasons: list[Season], cause: Exception):
        self.show = show
        self.seasons = seasons
        super().__init__(f"Episode extraction failed for {show.url}: {cause}", url=show.url)
