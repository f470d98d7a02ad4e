"""Interface des adapters catalogue + registre."""

from __future__ import annotations

from typing import Protocol

from cartooncrawl.core.models import Season, Show
from cartooncrawl.core.utils.http import HttpSession


class CatalogAdapter(Protocol):
    """Protocol pour un adapteur de site catalogue (pagination, séries, saisons, lien externe)."""

    id: str
    session: HttpSession

    def bind(self, **changes) -> CatalogAdapter:
        """Copie configurée pour un crawl (session HTTP, schéma, workers)."""
        ...

    def last_page(self, catalog_url: str) -> int:
        """Numéro de la dernière page du catalogue (0 si pas de pagination)."""
        ...

    def extract_shows(self, page_url: str) -> list[Show]:
        """Séries listées sur une page du catalogue."""
        ...

    def extract_seasons(self, show: Show, base_url: str) -> list[Season]:
        """
        Saisons et épisodes d'une série (liens externes résolus).

        Raises:
            ShowExtractionError: avec les saisons partielles si un épisode échoue.
        """
        ...

    def resolve_external(self, internal_url: str) -> str:
        """URL de la vidéo hébergée hors site ("" si absente de la page)."""
        ...


class AdapterRegistry:
    """Registre des adapters disponibles."""

    _adapters: dict[str, CatalogAdapter] = {}

    @classmethod
    def register(cls, adapter: CatalogAdapter) -> None:
        cls._adapters[adapter.id] = adapter

    @classmethod
    def get(cls, source_id: str) -> CatalogAdapter | None:
        """Retourne l'adapteur correspondant ou None si non trouvé."""
        return cls._adapters.get(source_id)

    @classmethod
    def get_or_raise(cls, source_id: str) -> CatalogAdapter:
        """Retourne l'adapteur correspondant ou lève une exception claire."""
        adapter = cls._adapters.get(source_id)
        if not adapter:
            available = ", ".join(cls.list_ids()) or "(aucun)"
            raise ValueError(
                f"Adapteur '{source_id}' introuvable. Adapteurs disponibles : {available}"
            )
        return adapter

    @classmethod
    def list_ids(cls) -> list[str]:
        return list(cls._adapters.keys())
