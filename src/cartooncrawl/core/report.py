"""Présentation du résultat d'un crawl : listing texte et export JSON."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from cartooncrawl.core.models import CrawlReport, ShowResult


def format_show_result(result: ShowResult) -> str:
    """Bloc texte d'une série : en-tête, saisons (nb d'épisodes), épisodes."""
    lines = [f"{result.index + 1:2d} {result.show.name} {result.show.url}"]
    if result.error is not None:
        lines.append("ERROR")
        lines.append(str(result.error))
    for j, season in enumerate(result.seasons, start=1):
        lines.append(f"\t{j:2d} {season.name} {len(season.episodes)}")
        for episode in season.episodes:
            lines.append(
                f"\t\t{episode.chapter} <-> {episode.name} <-> {episode.internal_url} <-> {episode.external_url}"
            )
    return "\n".join(lines)


def format_report(report: CrawlReport) -> str:
    """Listing complet ; en cas d'arrêt au niveau catalogue, seule l'erreur est rapportée."""
    lines: list[str] = []
    for result in report.results:
        lines.append(format_show_result(result))
    for url, error in report.page_errors.items():
        lines.append(f"PAGE ERROR {url}: {error}")
    if report.cancelled:
        lines.append("CANCELLED")
    elif report.error is not None:
        lines.append(f"ABORTED: {report.error}")
    return "\n".join(lines)


def _error_dict(error: Exception | None) -> dict[str, Any] | None:
    if error is None:
        return None
    data: dict[str, Any] = {"type": type(error).__name__, "message": str(error)}
    code = getattr(error, "code", None)
    if code is not None:
        data["code"] = code
    url = getattr(error, "url", None)
    if url:
        data["url"] = url
    return data


def report_to_dict(report: CrawlReport) -> dict[str, Any]:
    return {
        "catalog_url": report.catalog_url,
        "last_page": report.last_page,
        "page_urls": list(report.page_urls),
        "catalog_size": len(report.catalog),
        "shows": [
            {**r.show.to_dict(), "seasons": [s.to_dict() for s in r.seasons], "error": _error_dict(r.error)}
            for r in report.results
        ],
        "page_errors": {url: _error_dict(e) for url, e in report.page_errors.items()},
        "error": _error_dict(report.error),
        "cancelled": report.cancelled,
    }


def export_report_json(report: CrawlReport, path: Path) -> None:
    """Exporte le rapport en JSON (UTF-8, indenté)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report_to_dict(report), ensure_ascii=False, indent=2), encoding="utf-8")
