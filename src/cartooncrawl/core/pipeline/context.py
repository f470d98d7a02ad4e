"""Contrat typé du contexte passé au pipeline (runner et steps)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypedDict

from cartooncrawl.core.adapters.base import CatalogAdapter
from cartooncrawl.core.acquisition.profiles import CrawlOptions
from cartooncrawl.core.config import CrawlConfig
from cartooncrawl.core.models import CrawlReport, ShowResult


@dataclass
class CrawlState:
    """État mutable partagé par les étapes d'un crawl ; devient le CrawlReport."""

    report: CrawlReport
    on_show: Callable[[ShowResult], None] | None = None
    """Appelé dans l'ordre du catalogue pour chaque série traitée."""


class _PipelineContextOptional(TypedDict, total=False):
    """Clés optionnelles du contexte pipeline."""

    is_cancelled: Callable[[], bool] | None
    """If present, steps check this before scheduling work to abort early."""


class PipelineContext(_PipelineContextOptional):
    """
    Contexte passé à chaque étape du pipeline et au runner.

    Clés requises :
        config : configuration du crawl (CrawlConfig).
        options : options résolues (profil + overrides).
        adapter : adapteur déjà configuré pour ce crawl (session HTTP, schéma).
        state : CrawlState partagé (pages, séries, résultats).

    Clés optionnelles :
        is_cancelled : callable sans argument retournant True si le crawl a été annulé.
    """

    config: CrawlConfig
    options: CrawlOptions
    adapter: CatalogAdapter
    state: CrawlState
