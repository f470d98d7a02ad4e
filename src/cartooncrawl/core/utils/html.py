"""Parsing HTML (BeautifulSoup) et petits accesseurs tolérants aux éléments absents."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.element import Tag

from cartooncrawl.core.errors import ParseError

logger = logging.getLogger(__name__)


def make_soup(html: str) -> BeautifulSoup:
    try:
        return BeautifulSoup(html, "lxml")
    except FeatureNotFound as e:
        logger.debug("lxml non disponible, fallback html.parser: %s", e)
        return BeautifulSoup(html, "html.parser")


def parse_document(html: str, url: str | None = None) -> BeautifulSoup:
    """Parse le HTML ; toute erreur du parseur devient ParseError."""
    if html is None:
        raise ParseError("Empty document", url=url)
    try:
        return make_soup(html)
    except Exception as e:
        raise ParseError(f"Could not parse {url or 'document'}: {e}", url=url) from e


def select_text(node: Tag, selector: str) -> str:
    """Texte du premier élément correspondant, "" si absent."""
    el = node.select_one(selector)
    if el is None:
        return ""
    return el.get_text()


def select_attr(node: Tag, selector: str, attr: str) -> str | None:
    """Attribut du premier élément correspondant, None si élément ou attribut absent."""
    el = node.select_one(selector)
    if el is None:
        return None
    value = el.get(attr)
    if isinstance(value, list):
        return " ".join(value)
    return value
