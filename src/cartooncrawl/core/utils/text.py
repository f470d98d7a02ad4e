"""Utilitaires texte et URL."""

import re
from urllib.parse import urlparse

from cartooncrawl.core.errors import FormatError

_ASCII_INT = re.compile(r"[+-]?\d+", re.ASCII)


def parse_int_soft(text: str | None, default: int = 0) -> int:
    """Entier ASCII signé (espaces autour tolérés), `default` sinon."""
    s = (text or "").strip()
    if not _ASCII_INT.fullmatch(s):
        return default
    return int(s)


def parse_int_strict(text: str | None, field: str, url: str | None = None) -> int:
    """Comme parse_int_soft mais lève FormatError si le texte n'est pas un entier."""
    s = (text or "").strip()
    if not _ASCII_INT.fullmatch(s):
        raise FormatError(field, text or "", url=url)
    return int(s)


def origin_of(url: str) -> str:
    """scheme://host d'une URL (ex: https://www.lacartoons.com)."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def resolve_against(origin: str, path: str) -> str:
    """Concaténation stricte origine + chemin (pas de urljoin : le chemin est pris tel quel)."""
    return f"{origin}{path}"


def page_url(root: str, page: int) -> str:
    return f"{root}/?page={page}"


def page_urls(root: str, last_page: int) -> list[str]:
    """URLs des pages 1..last_page du catalogue ; liste vide si last_page <= 0."""
    return [page_url(root, n) for n in range(1, last_page + 1)]
