"""Point d'entrée ligne de commande : crawl du catalogue + listing texte / export JSON."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from cartooncrawl.core.acquisition.profiles import list_profile_ids
from cartooncrawl.core.config import CONFIG_FILENAME, CrawlConfig, load_crawl_config, write_default_config
from cartooncrawl.core.models import ShowResult
from cartooncrawl.core.pipeline.tasks import crawl_catalog
from cartooncrawl.core.report import export_report_json, format_show_result
from cartooncrawl.core.utils.logging import level_from_verbosity, setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cartooncrawl",
        description="Crawl d'un catalogue de séries animées : saisons, épisodes et liens vidéo externes.",
    )
    parser.add_argument("--config", type=Path, default=None, help=f"Fichier TOML (défaut : ./{CONFIG_FILENAME} si présent)")
    parser.add_argument("--init-config", type=Path, default=None, metavar="PATH", help="Écrit un fichier de config par défaut et quitte")
    parser.add_argument("--catalog-url", default=None, help="Racine du catalogue")
    parser.add_argument("--profile", choices=list_profile_ids(), default=None, help="Profil de crawl")
    parser.add_argument("--max-shows", type=int, default=None, help="Nombre maximal de séries à détailler")
    parser.add_argument("--strict-schema", action="store_true", help="Échoue si un repère structurel manque")
    parser.add_argument("--json", type=Path, default=None, dest="json_path", help="Export JSON du rapport")
    parser.add_argument("--log-file", type=Path, default=None, help="Fichier de log")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    return parser


def resolve_config(args: argparse.Namespace) -> CrawlConfig:
    """Config fichier (si présente) puis overrides ligne de commande."""
    path = args.config
    if path is None and Path(CONFIG_FILENAME).exists():
        path = Path(CONFIG_FILENAME)
    config = load_crawl_config(path) if path is not None else CrawlConfig()
    overrides: dict = {}
    if args.catalog_url:
        overrides["catalog_url"] = args.catalog_url.strip()
    if args.profile:
        overrides["profile_id"] = args.profile
    if args.max_shows is not None:
        overrides["max_shows"] = args.max_shows if args.max_shows > 0 else None
    if args.strict_schema:
        overrides["strict_schema"] = True
    return replace(config, **overrides) if overrides else config


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level_from_verbosity(args.verbose), log_file=args.log_file)

    if args.init_config is not None:
        write_default_config(args.init_config)
        print(f"Config written to {args.init_config}")
        return 0

    try:
        config = resolve_config(args)
    except (OSError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    def print_show(result: ShowResult) -> None:
        print(format_show_result(result), flush=True)

    report = crawl_catalog(config, on_show=print_show)

    for url, error in report.page_errors.items():
        print(f"PAGE ERROR {url}: {error}")
    if args.json_path is not None:
        export_report_json(report, args.json_path)
        logger.info("Report written to %s", args.json_path)
    if report.aborted:
        print(f"ERROR: {report.error}" if report.error is not None else "CANCELLED", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
