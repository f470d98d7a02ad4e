"""Tests d'intégration du crawl complet sur un site factice (httpx.MockTransport)."""

from __future__ import annotations

import threading

import pytest

from conftest import BASE_URL, FakeSite
from cartooncrawl.core.config import CrawlConfig
from cartooncrawl.core.errors import HttpStatusError, NetworkError, ShowExtractionError
from cartooncrawl.core.models import FailurePolicy, ShowResult
from cartooncrawl.core.pipeline.runner import PipelineRunner
from cartooncrawl.core.pipeline.tasks import crawl_catalog, map_bounded

CATALOG_ORDER = [
    "Ben 10",
    "El Laboratorio de Dexter",
    "Coraje, el Perro Cobarde",
    "Pinky y Cerebro",
]


def _crawl(site: FakeSite, config: CrawlConfig | None = None, **kwargs):
    client = site.client()
    try:
        return crawl_catalog(config or CrawlConfig(), client=client, **kwargs)
    finally:
        client.close()


def test_full_crawl_builds_ordered_report(fake_site):
    seen: list[ShowResult] = []
    report = _crawl(fake_site, on_show=seen.append)

    assert report.error is None
    assert not report.aborted
    assert report.last_page == 2
    assert report.page_urls == [f"{BASE_URL}/?page=1", f"{BASE_URL}/?page=2"]
    assert [s.name for s in report.catalog] == CATALOG_ORDER
    assert [r.show.name for r in report.results] == CATALOG_ORDER
    assert [r.index for r in seen] == [0, 1, 2, 3]

    ben, dexter, coraje, pinky = report.results
    assert [len(s.episodes) for s in ben.seasons] == [3, 2]
    assert ben.show.seasons is ben.seasons
    assert dexter.seasons[0].episodes[0].external_url == "https://player.example.test/embed/401"
    assert [len(s.episodes) for s in coraje.seasons] == [2, 0]
    assert pinky.seasons == []
    assert report.failed_shows == []


def test_crawl_does_not_close_caller_client(fake_site):
    client = fake_site.client()
    crawl_catalog(CrawlConfig(max_shows=1), client=client)
    assert not client.is_closed
    client.close()


def test_pagination_failure_stops_everything():
    site = FakeSite()
    site.add(BASE_URL, "down", status=500)

    report = _crawl(site)

    assert isinstance(report.error, HttpStatusError)
    assert report.error.code == 500
    assert report.last_page == 0
    assert report.catalog == []
    assert report.results == []


def test_catalog_without_pagination_is_empty_not_an_error(fixtures_dir):
    site = FakeSite()
    site.add(BASE_URL, (fixtures_dir / "catalog_no_pagination.html").read_text(encoding="utf-8"))

    report = _crawl(site)

    assert report.error is None
    assert report.last_page == 0
    assert report.page_urls == []
    assert report.results == []


def test_catalog_page_failure_aborts_by_default(fake_site):
    fake_site.add(f"{BASE_URL}/?page=2", "missing", status=404)

    report = _crawl(fake_site)

    assert isinstance(report.error, HttpStatusError)
    assert report.error.code == 404
    assert report.catalog == []
    assert report.results == []
    assert not fake_site.requested(f"{BASE_URL}/serie/ben-10")


def test_catalog_page_failure_skip_and_report(fake_site):
    fake_site.add(f"{BASE_URL}/?page=2", "missing", status=404)
    config = CrawlConfig(page_failure_policy=FailurePolicy.SKIP_AND_REPORT)

    report = _crawl(fake_site, config)

    assert report.error is None
    assert list(report.page_errors) == [f"{BASE_URL}/?page=2"]
    assert report.page_errors[f"{BASE_URL}/?page=2"].code == 404
    assert [r.show.name for r in report.results] == CATALOG_ORDER[:3]


def test_show_failure_is_reported_and_crawl_continues(fake_site):
    fake_site.add(f"{BASE_URL}/serie/capitulo/102", "boom", status=500)

    report = _crawl(fake_site)

    assert report.error is None
    assert [r.show.name for r in report.results] == CATALOG_ORDER
    failed = report.failed_shows
    assert len(failed) == 1
    ben = failed[0]
    assert isinstance(ben.error, ShowExtractionError)
    assert ben.error.__cause__.code == 500
    assert [len(s.episodes) for s in ben.seasons] == [1, 0]
    assert report.results[1].seasons[0].episodes


def test_show_failure_abort_policy_stops_after_first_failure(fake_site):
    fake_site.add(f"{BASE_URL}/serie/capitulo/102", "boom", status=500)
    config = CrawlConfig(show_failure_policy=FailurePolicy.ABORT)

    report = _crawl(fake_site, config)

    assert isinstance(report.error, ShowExtractionError)
    assert [r.show.name for r in report.results] == ["Ben 10"]
    assert report.results[0].failed
    assert not fake_site.requested(f"{BASE_URL}/serie/el-laboratorio-de-dexter")


def test_max_shows_limits_season_extraction(fake_site):
    report = _crawl(fake_site, CrawlConfig(max_shows=2))

    assert len(report.catalog) == 4
    assert [r.show.name for r in report.results] == CATALOG_ORDER[:2]
    assert not fake_site.requested(f"{BASE_URL}/serie/coraje")
    assert report.catalog[3].seasons is None


def test_parallel_profile_preserves_catalog_order(fake_site):
    seen: list[str] = []
    config = CrawlConfig(profile_id="fast_v1")

    report = _crawl(fake_site, config, on_show=lambda r: seen.append(r.show.name))

    assert seen == CATALOG_ORDER
    assert [r.show.name for r in report.results] == CATALOG_ORDER
    ben = report.results[0]
    assert [e.chapter for e in ben.seasons[0].episodes] == [1, 2, 3]
    assert [e.external_url for e in ben.seasons[1].episodes] == [
        "https://player.example.test/embed/201",
        "https://player.example.test/embed/202",
    ]


def test_runner_cancelled_before_crawl_sends_no_request(fake_site):
    runner = PipelineRunner()
    runner.cancel()

    report = _crawl(fake_site, runner=runner)

    assert report.cancelled
    assert report.error is None
    assert fake_site.requests == []


def test_unusable_episode_href_keeps_partial_seasons_in_report(fake_site):
    fake_site.add(
        f"{BASE_URL}/serie/el-laboratorio-de-dexter",
        """<div class="contenedor-episondios"><h4 class="estilo-temporada">Temporada 1</h4>
        <div><ul><li><a href="/serie/capitulo/401">Dexter y la bomba</a></li>
        <li><a href="javascript:void(0)">Roto</a></li></ul></div></div>""",
    )

    report = _crawl(fake_site)

    assert report.error is None
    dexter = report.results[1]
    assert isinstance(dexter.error, ShowExtractionError)
    assert isinstance(dexter.error.__cause__, NetworkError)
    assert [e.chapter for e in dexter.seasons[0].episodes] == [1]
    assert dexter.show.seasons == dexter.seasons
    assert not report.results[2].failed


def test_cancel_during_crawl_marks_report(fake_site):
    runner = PipelineRunner()
    seen: list[ShowResult] = []

    def on_show(result: ShowResult) -> None:
        seen.append(result)
        runner.cancel()

    report = _crawl(fake_site, runner=runner, on_show=on_show)

    assert report.cancelled
    assert report.aborted
    assert len(seen) == 1
    assert len(report.results) == 1
    assert not fake_site.requested(f"{BASE_URL}/serie/el-laboratorio-de-dexter")


def test_progress_and_log_callbacks_are_forwarded(fake_site):
    progress: list[tuple[str, float]] = []
    logs: list[tuple[str, str]] = []

    _crawl(
        fake_site,
        CrawlConfig(max_shows=1),
        on_progress=lambda step, p, _m: progress.append((step, p)),
        on_log=lambda level, msg: logs.append((level, msg)),
    )

    steps = {step for step, _ in progress}
    assert {"discover_pages", "extract_catalog", "extract_seasons"} <= steps
    assert progress[-1][1] == pytest.approx(1.0)
    assert any("extract_seasons" in msg for _, msg in logs)


def test_unknown_source_is_rejected(fake_site):
    with pytest.raises(ValueError):
        _crawl(fake_site, CrawlConfig(source_id="unknown"))


# ----- map_bounded -----


@pytest.mark.parametrize("workers", [1, 4])
def test_map_bounded_tags_results_with_input_index(workers):
    items = [3, 1, 2, 0]
    results = {i: (value, error) for i, value, error in map_bounded(lambda x: x * 10, items, workers, lambda: False)}

    assert sorted(results) == [0, 1, 2, 3]
    assert [results[i][0] for i in range(4)] == [30, 10, 20, 0]
    assert all(error is None for _, error in results.values())


def test_map_bounded_reports_errors_per_item():
    def fn(x):
        if x == 2:
            raise RuntimeError("bad item")
        return x

    results = list(map_bounded(fn, [1, 2, 3], 1, lambda: False))

    assert [(i, v) for i, v, _ in results] == [(0, 1), (1, None), (2, 3)]
    assert isinstance(results[1][2], RuntimeError)


def test_map_bounded_sequential_stops_scheduling():
    stop = threading.Event()
    calls: list[int] = []

    def fn(x):
        calls.append(x)
        if x == 1:
            stop.set()
        return x

    list(map_bounded(fn, [0, 1, 2, 3], 1, stop.is_set))

    assert calls == [0, 1]
