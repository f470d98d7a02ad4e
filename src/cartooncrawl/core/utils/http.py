"""Utilitaires HTTP : GET avec timeout, statut 200 strict, annulation coopérative."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

import httpx

from cartooncrawl.core.errors import CrawlCancelled, HttpStatusError, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


def _get_text(
    client: httpx.Client,
    url: str,
    headers: dict[str, str],
    timeout_s: Optional[float],
) -> str:
    # stream() + with : le corps est libéré une seule fois, quel que soit le chemin
    with client.stream("GET", url, headers=headers or None, timeout=timeout_s) as resp:
        if resp.status_code != 200:
            raise HttpStatusError(resp.status_code, url=url)
        resp.read()
        # Prefer UTF-8 for HTML when charset is missing or dubious
        if resp.encoding in (None, "ascii", "ISO-8859-1"):
            resp.encoding = "utf-8"
        return resp.text


def fetch_html(
    url: str,
    *,
    client: Optional[httpx.Client] = None,
    timeout_s: Optional[float] = DEFAULT_TIMEOUT_S,
    user_agent: Optional[str] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> str:
    """
    Récupère le contenu HTML d'une URL (GET unique, sans retry).

    Args:
        url: URL à récupérer.
        client: Client httpx partagé (optionnel ; sinon un client est créé puis fermé).
        timeout_s: Timeout en secondes (None = pas de limite).
        user_agent: User-Agent (optionnel).
        is_cancelled: Si fourni et vrai, aucune requête n'est émise.

    Returns:
        Contenu de la réponse en texte.

    Raises:
        CrawlCancelled: Annulation demandée avant la requête.
        HttpStatusError: Statut différent de 200.
        NetworkError: Échec de transport ou URL inutilisable.
    """
    if is_cancelled is not None and is_cancelled():
        raise CrawlCancelled(f"Cancelled before fetching {url}", url=url)

    headers = {}
    if user_agent:
        headers["User-Agent"] = user_agent

    logger.debug("GET %s", url)
    try:
        if client is not None:
            return _get_text(client, url, headers, timeout_s)
        with httpx.Client(timeout=timeout_s, follow_redirects=True) as own_client:
            return _get_text(own_client, url, headers, timeout_s)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise NetworkError(f"GET {url} failed: {exc}", url=url) from exc


@dataclass(frozen=True)
class HttpSession:
    """Paramètres de fetch partagés par toutes les requêtes d'un crawl."""

    client: Optional[httpx.Client] = None
    timeout_s: Optional[float] = DEFAULT_TIMEOUT_S
    user_agent: Optional[str] = None
    is_cancelled: Optional[Callable[[], bool]] = None

    def get(self, url: str) -> str:
        return fetch_html(
            url,
            client=self.client,
            timeout_s=self.timeout_s,
            user_agent=self.user_agent,
            is_cancelled=self.is_cancelled,
        )

    def with_cancel(self, extra: Callable[[], bool]) -> HttpSession:
        """Copie dont l'annulation combine le jeton courant et `extra`."""
        outer = self.is_cancelled

        def combined() -> bool:
            return extra() or (outer is not None and outer())

        return replace(self, is_cancelled=combined)


def make_client(*, timeout_s: Optional[float] = DEFAULT_TIMEOUT_S, user_agent: Optional[str] = None) -> httpx.Client:
    """Client partagé pour tout un crawl (pool de connexions réutilisé entre threads)."""
    headers = {"User-Agent": user_agent} if user_agent else None
    return httpx.Client(timeout=timeout_s, follow_redirects=True, headers=headers)
