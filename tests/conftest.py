"""Fixtures pytest communes."""
from __future__ import annotations

import threading
from pathlib import Path

import httpx
import pytest

# Répertoire des fixtures
FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"

BASE_URL = "https://www.lacartoons.com"


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


class FakeSite:
    """Site factice servi via httpx.MockTransport : URL -> (statut, HTML) ou exception."""

    def __init__(self) -> None:
        self._pages: dict[str, tuple[int, str]] = {}
        self._errors: dict[str, Exception] = {}
        self.requests: list[str] = []
        self._lock = threading.Lock()

    @staticmethod
    def _key(url: str) -> str:
        return str(httpx.URL(url))

    def add(self, url: str, body: str, status: int = 200) -> None:
        self._pages[self._key(url)] = (status, body)

    def add_fixture(self, url: str, name: str) -> None:
        self.add(url, read_fixture(name))

    def fail(self, url: str, error: Exception) -> None:
        self._errors[self._key(url)] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        with self._lock:
            self.requests.append(url)
        if url in self._errors:
            raise self._errors[url]
        status, body = self._pages.get(url, (404, "not found"))
        return httpx.Response(status, text=body)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler), follow_redirects=True)

    def requested(self, url: str) -> bool:
        return self._key(url) in self.requests


def build_lacartoons_site() -> FakeSite:
    """Catalogue de 2 pages : Ben 10 (2 saisons) + Dexter + Coraje (saison 2 sans liste)."""
    site = FakeSite()
    site.add(
        BASE_URL,
        """<div class="paginacion-all-series"><ul class="pagination"><li><nav><ul class="pagination">
        <li><a href="/?page=1">1</a></li><li><a href="/?page=2">2</a></li>
        <li><a href="/?page=2">Siguiente</a></li></ul></nav></li></ul></div>""",
    )
    site.add_fixture(f"{BASE_URL}/?page=1", "catalog_page.html")
    site.add(
        f"{BASE_URL}/?page=2",
        """<div class="conjuntos-series">
        <a href="/serie/pinky"><div class="informacion-serie"><div>
        <p class="nombre-serie">Pinky y Cerebro</p><span class="marcador-ano">1995</span>
        </div></div></a></div>""",
    )
    site.add_fixture(f"{BASE_URL}/serie/ben-10", "show_page.html")
    site.add(
        f"{BASE_URL}/serie/el-laboratorio-de-dexter",
        """<div class="contenedor-episondios"><h4 class="estilo-temporada">Temporada 1</h4>
        <div><ul><li><a href="/serie/capitulo/401">Dexter y la bomba</a></li></ul></div></div>""",
    )
    site.add_fixture(f"{BASE_URL}/serie/coraje", "show_missing_list.html")
    site.add(f"{BASE_URL}/serie/pinky", """<div class="contenedor-episondios"></div>""")
    for chapter in ("101", "102", "103", "201", "202", "301", "302", "401"):
        site.add(
            f"{BASE_URL}/serie/capitulo/{chapter}",
            f'<div class="container"><iframe src="https://player.example.test/embed/{chapter}"></iframe></div>',
        )
    return site


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def fake_site() -> FakeSite:
    return build_lacartoons_site()
