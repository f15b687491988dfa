"""Tests for delivery to a stub qBittorrent Web API."""

import asyncio
from dataclasses import dataclass, field

import pytest
from aiohttp import web

from spider_cli.api.qbittorrent import QBittorrentClient
from spider_cli.models.config import QBFetcherConfig
from spider_cli.models.outcome import FailureReason

pytestmark = pytest.mark.anyio

LINK = "https://cdn.example/final.torrent"


@dataclass
class StubState:
    password: str = "secret"
    logins: int = 0
    issued: list[str] = field(default_factory=list)
    submits: list[dict] = field(default_factory=list)
    reject_next_submits: int = 0
    add_status: int = 200
    duplicate_status: int = 409
    added: set[str] = field(default_factory=set)


def make_qbittorrent(state: StubState) -> web.Application:
    async def login(request: web.Request) -> web.Response:
        form = await request.post()
        await asyncio.sleep(0.05)
        state.logins += 1
        if form.get("password") != state.password:
            return web.Response(text="Fails.")
        sid = f"sid-{state.logins}"
        state.issued.append(sid)
        response = web.Response(text="Ok.")
        response.set_cookie("SID", sid)
        return response

    async def add(request: web.Request) -> web.Response:
        form = await request.post()
        state.submits.append(
            {
                "urls": form.get("urls"),
                "savepath": form.get("savepath"),
                "cookie": request.headers.get("Cookie", ""),
                "referer": request.headers.get("Referer", ""),
            }
        )
        if state.reject_next_submits > 0:
            state.reject_next_submits -= 1
            return web.Response(status=403, text="Forbidden")
        if state.issued and request.cookies.get("SID") not in state.issued:
            return web.Response(status=403, text="Forbidden")
        if state.add_status != 200:
            return web.Response(status=state.add_status, text="Fails.")
        if form.get("urls") in state.added:
            if state.duplicate_status == 409:
                return web.Response(status=409, text="Conflict")
            return web.Response(text="Fails.")
        state.added.add(form.get("urls"))
        return web.Response(text="Ok.")

    app = web.Application()
    app.router.add_post("/api/v2/auth/login", login)
    app.router.add_post("/api/v2/torrents/add", add)
    return app


async def make_client(serve, state: StubState, **overrides) -> QBittorrentClient:
    server = await serve(make_qbittorrent(state))
    values = {
        "url": str(server.make_url("/")),
        "username": "admin",
        "password": "secret",
        "save_path": "/downloads/",
    }
    values.update(overrides)
    return QBittorrentClient(QBFetcherConfig(**values))


async def test_deliver_logs_in_and_submits_with_session_cookie(serve) -> None:
    state = StubState()
    async with await make_client(serve, state) as client:
        result = await client.deliver(LINK, "Show")

    assert result.success
    assert not result.already_existed
    assert state.logins == 1
    [submit] = state.submits
    assert submit["urls"] == LINK
    assert submit["savepath"] == "/downloads/Show"
    assert submit["cookie"] == "SID=sid-1"
    assert submit["referer"]


@pytest.mark.parametrize("duplicate_status", [409, 200], ids=["conflict", "fails-body"])
async def test_delivering_same_link_twice_succeeds_both_times(
    serve, duplicate_status: int
) -> None:
    state = StubState(duplicate_status=duplicate_status)
    async with await make_client(serve, state) as client:
        first = await client.deliver(LINK, "Show")
        second = await client.deliver(LINK, "Show")

    assert first.success
    assert not first.already_existed
    assert second.success
    assert second.already_existed
    assert len(state.submits) == 2


async def test_rejected_session_is_renewed_once_and_resubmitted(serve) -> None:
    state = StubState(reject_next_submits=1)
    async with await make_client(serve, state) as client:
        result = await client.deliver(LINK, "Show")

    assert result.success
    assert state.logins == 2
    assert [s["cookie"] for s in state.submits] == ["SID=sid-1", "SID=sid-2"]


async def test_second_rejection_after_renewal_fails_delivery(serve) -> None:
    state = StubState(reject_next_submits=2)
    async with await make_client(serve, state) as client:
        result = await client.deliver(LINK, "Show")

    assert not result.success
    assert result.reason is FailureReason.AUTH_REJECTED
    assert len(state.submits) == 2


async def test_concurrent_deliveries_share_a_single_login(serve) -> None:
    state = StubState()
    async with await make_client(serve, state) as client:
        results = await asyncio.gather(
            *(client.deliver(f"{LINK}?n={n}", f"Show {n}") for n in range(5))
        )

    assert all(r.success for r in results)
    assert state.logins == 1
    assert len(state.submits) == 5


async def test_wrong_credentials_fail_without_submitting(serve, caplog) -> None:
    state = StubState()
    async with await make_client(serve, state, password="wrong") as client:
        first = await client.deliver(LINK, "Show")
        second = await client.deliver(LINK, "Other")
        await client.deliver(LINK, "Third")

    assert first.reason is FailureReason.AUTH_REJECTED
    assert second.reason is FailureReason.AUTH_REJECTED
    assert state.logins == 1
    assert state.submits == []
    skipped = [r for r in caplog.records if "skipping further login" in r.getMessage()]
    assert len(skipped) == 1
    assert skipped[0].levelname == "WARNING"


async def test_no_username_skips_login(serve) -> None:
    state = StubState()
    async with await make_client(serve, state, username="", password="") as client:
        result = await client.deliver(LINK, "Show")

    assert result.success
    assert state.logins == 0
    assert state.submits[0]["cookie"] == ""


async def test_refused_job_is_submit_error(serve) -> None:
    state = StubState(add_status=415)
    async with await make_client(serve, state) as client:
        result = await client.deliver(LINK, "Show")

    assert not result.success
    assert result.reason is FailureReason.SUBMIT_ERROR
    assert "415" in result.detail


async def test_unreachable_service_is_transport_error(serve) -> None:
    state = StubState()
    server = await serve(make_qbittorrent(state))
    url = str(server.make_url("/"))
    await server.close()

    async with QBittorrentClient(QBFetcherConfig(url=url), timeout=5) as client:
        result = await client.deliver(LINK, "Show")

    assert not result.success
    assert result.reason is FailureReason.TRANSPORT_ERROR
