"""End-to-end pass: TOML files, a stub site and a stub qBittorrent."""

from pathlib import Path

import pytest
from aiohttp import web

from spider_cli.cli.app import run_pass
from spider_cli.models.config import SpiderSettings
from spider_cli.models.content import Candidate
from spider_cli.models.outcome import Outcome
from spider_cli.storage.config_manager import ConfigManager

pytestmark = pytest.mark.anyio


def make_site() -> web.Application:
    async def search(request: web.Request) -> web.Response:
        if request.query["q"] == "Show S02E01":
            body = '<a class="result" href="/item/42">Show S02E01</a>'
        else:
            body = "<p>Nothing found.</p>"
        return web.Response(text=body, content_type="text/html")

    async def item(request: web.Request) -> web.Response:
        return web.Response(
            text='<a class="magnet" href="https://cdn.example/final.torrent">get</a>',
            content_type="text/html",
        )

    app = web.Application()
    app.router.add_get("/search", search)
    app.router.add_get("/item/{id}", item)
    return app


def make_qbittorrent(jobs: list[str]) -> web.Application:
    async def add(request: web.Request) -> web.Response:
        form = await request.post()
        jobs.append(form["urls"])
        return web.Response(text="Ok.")

    app = web.Application()
    app.router.add_post("/api/v2/torrents/add", add)
    return app


async def test_pass_falls_back_to_next_season_and_saves_counters(
    serve, tmp_path: Path
) -> None:
    jobs: list[str] = []
    site = await serve(make_site())
    qbittorrent = await serve(make_qbittorrent(jobs))

    (tmp_path / "contents.toml").write_text(
        '[[content]]\ntitle = "Show"\nfirst = 1\nsecond = 12\n'
        'first_prefix = "S"\nsecond_prefix = "E"\ndigits = 2\n',
        encoding="utf-8",
    )
    (tmp_path / "crawlers.toml").write_text(
        f'[[crawlers]]\ntype = "twostageweb"\nurl = "{site.make_url("/")}"\n'
        'search_page = "search"\nsearch_get_name = "q"\nuser_agent = "ua"\n'
        'wait = 0\nfirst_stage_match = "a.result"\nsecond_stage_match = "a.magnet"\n',
        encoding="utf-8",
    )
    (tmp_path / "fetchers.toml").write_text(
        f'[[fetchers]]\ntype = "qbfetcher"\nurl = "{qbittorrent.make_url("/")}"\n'
        'save_path = "/downloads/"\n',
        encoding="utf-8",
    )

    settings = SpiderSettings(
        contents_path=tmp_path / "contents.toml",
        crawlers_path=tmp_path / "crawlers.toml",
        fetchers_path=tmp_path / "fetchers.toml",
        json_log_dir=tmp_path / "events",
        max_workers=2,
    )
    manager = ConfigManager(
        settings.contents_path, settings.crawlers_path, settings.fetchers_path
    )

    results, stats = await run_pass(
        settings,
        manager,
        manager.load_contents(),
        manager.load_crawlers()[0],
        manager.load_fetchers()[0],
    )

    [result] = results
    assert result.outcome is Outcome.DELIVERED
    assert result.query == "Show S02E01"
    assert jobs == ["https://cdn.example/final.torrent"]
    assert manager.load_contents()[0].candidate == Candidate(2, 1)
    assert stats.entries_delivered == 1
    assert not stats.has_errors
    assert list((tmp_path / "events").glob("spider_*.jsonl"))
