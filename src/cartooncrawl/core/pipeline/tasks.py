"""Tâches concrètes du pipeline : DiscoverPages, ExtractCatalog, ExtractSeasons + crawl_catalog()."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Iterable, Iterator

import httpx

from cartooncrawl.core.acquisition.profiles import format_options_summary
from cartooncrawl.core.adapters import lacartoons  # noqa: F401  (enregistrement de l'adapteur)
from cartooncrawl.core.adapters.base import AdapterRegistry, CatalogAdapter
from cartooncrawl.core.config import CrawlConfig
from cartooncrawl.core.errors import CrawlCancelled, CrawlError, ShowExtractionError
from cartooncrawl.core.models import CrawlReport, FailurePolicy, Show, ShowResult
from cartooncrawl.core.pipeline.context import CrawlState, PipelineContext
from cartooncrawl.core.pipeline.runner import PipelineRunner
from cartooncrawl.core.pipeline.steps import LogCallback, ProgressCallback, Step, StepResult
from cartooncrawl.core.utils.http import HttpSession, make_client
from cartooncrawl.core.utils.text import page_urls

logger = logging.getLogger(__name__)


def _step_logger(on_log: LogCallback | None) -> Callable[[str, str], None]:
    def log(level: str, msg: str):
        if on_log:
            on_log(level, msg)
        getattr(logger, level.lower(), logger.info)(msg)

    return log


def _is_cancellation(error: BaseException) -> bool:
    return isinstance(error, CrawlCancelled) or isinstance(error.__cause__, CrawlCancelled)


def map_bounded(
    fn: Callable[[Any], Any],
    items: list[Any],
    workers: int,
    should_stop: Callable[[], bool],
) -> Iterator[tuple[int, Any, Exception | None]]:
    """
    Applique `fn` à chaque item sur un pool borné de `workers` threads.

    Produit (index, résultat, erreur) dans l'ordre de complétion ; l'index permet
    au consommateur de reconstituer l'ordre d'entrée. Dès que `should_stop()`
    est vrai, plus rien n'est planifié et les tâches en attente sont annulées.
    Avec workers <= 1 : exécution séquentielle dans le thread appelant.
    """
    if workers <= 1:
        for i, item in enumerate(items):
            if should_stop():
                return
            try:
                yield i, fn(item), None
            except Exception as e:
                yield i, None, e
        return

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="crawl") as pool:
        futures = {pool.submit(fn, item): i for i, item in enumerate(items)}
        for future in as_completed(futures):
            if future.cancelled():
                continue
            try:
                yield futures[future], future.result(), None
            except Exception as e:
                yield futures[future], None, e
            if should_stop():
                for pending in futures:
                    pending.cancel()


def _cancel_token(context: PipelineContext, stop: threading.Event) -> Callable[[], bool]:
    outer = context.get("is_cancelled")

    def cancelled() -> bool:
        return stop.is_set() or (outer is not None and outer())

    return cancelled


def _runner_cancelled(context: PipelineContext) -> bool:
    outer = context.get("is_cancelled")
    return bool(outer is not None and outer())


class DiscoverPagesStep(Step):
    """Lit le nombre de pages du catalogue et construit les URLs de page. Tout échec arrête le crawl."""

    name = "discover_pages"

    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        config: CrawlConfig = context["config"]
        adapter: CatalogAdapter = context["adapter"]
        report = context["state"].report
        log = _step_logger(on_log)

        if on_progress:
            on_progress(self.name, 0.0, "Discovering catalog pages...")
        try:
            last_page = adapter.last_page(config.catalog_url)
        except CrawlCancelled:
            return StepResult.interrupted()
        except CrawlError as e:
            log("error", f"Pagination discovery failed for {config.catalog_url}: {e}")
            return StepResult.failure(e)

        report.last_page = last_page
        report.page_urls = page_urls(config.catalog_url, last_page)
        if last_page == 0:
            log("warning", f"No pagination found on {config.catalog_url}: empty catalog")
        return StepResult.ok(f"Found {last_page} catalog page(s)", last_page=last_page)


class ExtractCatalogStep(Step):
    """
    Extrait les séries de chaque page du catalogue (pool borné, ordre des pages conservé).

    ABORT : le premier échec de page arrête tout, aucune série n'est conservée.
    SKIP_AND_REPORT : la page en échec est notée dans report.page_errors et ignorée.
    """

    name = "extract_catalog"

    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        config: CrawlConfig = context["config"]
        report = context["state"].report
        log = _step_logger(on_log)
        urls = list(report.page_urls)
        policy = config.page_failure_policy

        stop = threading.Event()
        cancelled = _cancel_token(context, stop)
        adapter: CatalogAdapter = context["adapter"]
        worker = adapter.bind(session=adapter.session.with_cancel(cancelled))

        pages: list[list[Show] | None] = [None] * len(urls)
        first_error: Exception | None = None
        done = 0
        for i, shows, error in map_bounded(
            worker.extract_shows, urls, context["options"].page_workers, cancelled
        ):
            done += 1
            if on_progress:
                on_progress(self.name, done / max(1, len(urls)), f"Page {i + 1}/{len(urls)}")
            if error is None:
                pages[i] = shows
                continue
            if _is_cancellation(error):
                continue
            if policy is FailurePolicy.ABORT:
                log("error", f"Catalog page {urls[i]} failed: {error}")
                if first_error is None:
                    first_error = error
                stop.set()
            else:
                log("warning", f"Catalog page {urls[i]} skipped: {error}")
                report.page_errors[urls[i]] = error

        if _runner_cancelled(context):
            return StepResult.interrupted()
        if first_error is not None:
            return StepResult.failure(first_error, f"Catalog enumeration aborted: {first_error}")

        report.catalog = [show for page in pages if page for show in page]
        return StepResult.ok(f"Found {len(report.catalog)} show(s)", shows=len(report.catalog))


class ExtractSeasonsStep(Step):
    """
    Extrait saisons et épisodes de chaque série (pool borné, résultats remis dans l'ordre du catalogue).

    SKIP_AND_REPORT : l'erreur est journalisée, la série est gardée avec son partiel, le crawl continue.
    ABORT : plus rien n'est planifié après le premier échec ; les résultats déjà obtenus restent.
    """

    name = "extract_seasons"

    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        config: CrawlConfig = context["config"]
        state: CrawlState = context["state"]
        report = state.report
        log = _step_logger(on_log)
        policy = config.show_failure_policy

        shows = report.catalog if config.max_shows is None else report.catalog[: config.max_shows]
        stop = threading.Event()
        cancelled = _cancel_token(context, stop)
        adapter: CatalogAdapter = context["adapter"]
        worker = adapter.bind(session=adapter.session.with_cancel(cancelled))

        def extract(show: Show):
            return worker.extract_seasons(show, config.catalog_url)

        collected: dict[int, ShowResult] = {}
        next_index = 0
        abort_error: Exception | None = None

        def flush(up_to_end: bool = False) -> None:
            nonlocal next_index
            while next_index < len(shows):
                if next_index not in collected:
                    if not up_to_end:
                        return
                    next_index += 1
                    continue
                if state.on_show:
                    state.on_show(collected[next_index])
                next_index += 1

        for i, seasons, error in map_bounded(extract, shows, context["options"].show_workers, cancelled):
            show = shows[i]
            if error is None:
                show.seasons = seasons
                collected[i] = ShowResult(index=i, show=show, seasons=seasons)
            else:
                partial = error.seasons if isinstance(error, ShowExtractionError) else []
                show.seasons = partial
                collected[i] = ShowResult(index=i, show=show, seasons=partial, error=error)
                if _is_cancellation(error):
                    log("warning", f"Show {show.url} interrupted: {error}")
                elif policy is FailurePolicy.ABORT:
                    log("error", f"Show {show.url} failed, stopping crawl: {error}")
                    if abort_error is None:
                        abort_error = error
                    stop.set()
                else:
                    log("error", f"Show {show.url} failed: {error}")
            if on_progress:
                on_progress(self.name, len(collected) / max(1, len(shows)), show.name.strip() or show.url)
            flush()
        flush(up_to_end=True)

        report.results = [collected[i] for i in sorted(collected)]
        if _runner_cancelled(context):
            return StepResult.interrupted()
        if abort_error is not None:
            return StepResult.failure(abort_error, f"Crawl aborted: {abort_error}")
        failed = len(report.failed_shows)
        return StepResult.ok(
            f"Extracted {len(report.results)} show(s), {failed} with errors",
            shows=len(report.results),
            failed=failed,
        )


def build_crawl_steps() -> list[Step]:
    return [DiscoverPagesStep(), ExtractCatalogStep(), ExtractSeasonsStep()]


def crawl_catalog(
    config: CrawlConfig | None = None,
    *,
    client: httpx.Client | None = None,
    adapter: CatalogAdapter | None = None,
    runner: PipelineRunner | None = None,
    steps: Iterable[Step] | None = None,
    on_progress: ProgressCallback | None = None,
    on_log: LogCallback | None = None,
    on_show: Callable[[ShowResult], None] | None = None,
) -> CrawlReport:
    """
    Crawl complet : pagination -> séries (toutes pages) -> saisons/épisodes par série.

    Args:
        config: Configuration (défaut : CrawlConfig()).
        client: Client httpx partagé (sinon créé et fermé ici).
        adapter: Adapteur (sinon résolu par config.source_id dans le registre).
        runner: PipelineRunner (permet d'annuler depuis un autre thread).
        on_show: Reçoit chaque ShowResult dans l'ordre du catalogue.

    Returns:
        CrawlReport ; report.error est renseigné si le crawl a été interrompu.
    """
    config = config or CrawlConfig()
    options = config.options()
    runner = runner or PipelineRunner()
    logger.info("Crawling %s (%s)", config.catalog_url, format_options_summary(options))

    own_client = client is None
    http_client = client if client is not None else make_client(timeout_s=options.timeout_s)
    report = CrawlReport(catalog_url=config.catalog_url)
    try:
        session = HttpSession(
            client=http_client,
            timeout_s=options.timeout_s,
            user_agent=options.user_agent,
            is_cancelled=lambda: runner.cancelled,
        )
        base = adapter if adapter is not None else AdapterRegistry.get_or_raise(config.source_id)
        bound = base.bind(
            session=session,
            schema=config.schema(),
            strict_schema=config.strict_schema,
            episode_workers=options.episode_workers,
        )
        context: PipelineContext = {
            "config": config,
            "options": options,
            "adapter": bound,
            "state": CrawlState(report=report, on_show=on_show),
        }

        def mark_cancelled() -> None:
            report.cancelled = True

        def record_error(step_name: str, error: Exception) -> None:
            if report.error is None:
                report.error = error

        runner.run(
            list(steps) if steps is not None else build_crawl_steps(),
            context,
            on_progress=on_progress,
            on_log=on_log,
            on_error=record_error,
            on_cancelled=mark_cancelled,
        )
    finally:
        if own_client:
            http_client.close()

    logger.info(
        "Crawl finished: %d page(s), %d show(s) listed, %d processed, %d failed%s",
        report.last_page,
        len(report.catalog),
        len(report.results),
        len(report.failed_shows),
        " (aborted)" if report.aborted else "",
    )
    return report
