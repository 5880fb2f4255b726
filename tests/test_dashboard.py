from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from cfboard.config import Config
from cfboard.dashboard import Board
from cfboard.display import KeyDisplay
from cfboard.errors import ApiError
from cfboard.models import SystemStatus, WorkerMetrics

CREDS = {"api_token": "token", "account_id": "acct"}


def _cfg(widgets, interval=60, cloudflare=CREDS) -> Config:
    return Config(raw={"refresh_interval_seconds": interval, "cloudflare": dict(cloudflare), "widgets": widgets})


@pytest.fixture
def client():
    c = MagicMock()
    c.get_system_status.return_value = SystemStatus(indicator="none", description="All good")
    c.get_worker_analytics.return_value = WorkerMetrics(requests=10, errors=1)
    return c


@pytest.fixture
def make_board(tmp_path, scheduler, client):
    boards = []

    def _make(cfg: Config) -> Board:
        board = Board(
            cfg,
            display=KeyDisplay(tmp_path, "svg"),
            scheduler=scheduler,
            clock=scheduler.time,
            client_factory=lambda token, account: client,
        )
        boards.append(board)
        return board

    yield _make
    for board in boards:
        board.coordinator.reset()


@pytest.mark.asyncio
async def test_start_renders_every_key(make_board, tmp_path):
    board = make_board(_cfg([{"type": "status"}, {"id": "wa", "type": "worker_analytics", "worker_name": "api"}]))
    await board.start()

    assert (tmp_path / "status.svg").exists()
    assert (tmp_path / "wa.svg").exists()
    assert board.display.faces["status"].line2 == "OK"
    assert board.display.faces["wa"].line2 == "10"
    assert board.coordinator.subscriber_count == 2
    assert board.coordinator.running


@pytest.mark.asyncio
async def test_shared_timer_refreshes_all(make_board, scheduler, client):
    board = make_board(_cfg([{"type": "status"}, {"id": "wa", "type": "worker_analytics", "worker_name": "api"}]))
    await board.start()
    await scheduler.advance(120)
    assert client.get_system_status.call_count == 3
    assert client.get_worker_analytics.call_count == 3


@pytest.mark.asyncio
async def test_one_failing_widget_does_not_stop_the_other(make_board, scheduler, client):
    client.get_worker_analytics.side_effect = ApiError("boom")
    board = make_board(_cfg([{"type": "status"}, {"id": "wa", "type": "worker_analytics", "worker_name": "api"}]))
    await board.start()
    await scheduler.advance(60)
    assert client.get_system_status.call_count == 2
    assert board.display.faces["wa"].line2 == "ERR"
    assert board.display.faces["status"].line2 == "OK"


@pytest.mark.asyncio
async def test_unknown_widget_type(make_board):
    board = make_board(_cfg([{"id": "x", "type": "nope"}, {"type": "status"}]))
    await board.start()
    assert "x" not in board.widgets
    assert board.display.faces["x"].line2 == "Unknown"
    assert board.display.faces["status"].line2 == "OK"


@pytest.mark.asyncio
async def test_press(make_board, client):
    board = make_board(_cfg([{"type": "status"}]))
    await board.start()
    assert await board.press("status")
    assert client.get_system_status.call_count == 2
    assert not await board.press("missing")


@pytest.mark.asyncio
async def test_stop_releases_timer(make_board, scheduler, client):
    board = make_board(_cfg([{"type": "status"}]))
    await board.start()
    await board.stop()
    assert board.coordinator.subscriber_count == 0
    assert not board.coordinator.running
    await scheduler.advance(600)
    assert client.get_system_status.call_count == 1


@pytest.mark.asyncio
async def test_reload_applies_interval_and_widget_changes(make_board, scheduler, client):
    board = make_board(
        _cfg([{"type": "status"}, {"id": "wa", "type": "worker_analytics", "worker_name": "api"}])
    )
    await board.start()
    status = board.widgets["status"]

    await board.reload(
        _cfg(
            [{"type": "status"}, {"id": "wa", "type": "worker_analytics", "worker_name": "web"}, {"id": "s2", "type": "status"}],
            interval=300,
        )
    )

    assert board.coordinator.interval_seconds == 300
    assert board.widgets["status"] is status
    assert set(board.widgets) == {"status", "wa", "s2"}
    client.get_worker_analytics.assert_called_with("web", "24h")
    # untouched widget was not refetched
    assert client.get_system_status.call_count == 2

    await board.reload(_cfg([{"type": "status"}], interval=300))
    assert set(board.widgets) == {"status"}
    assert board.coordinator.subscriber_count == 1


@pytest.mark.asyncio
async def test_reload_without_credentials_shows_setup(make_board, monkeypatch):
    monkeypatch.delenv("CLOUDFLARE_API_TOKEN", raising=False)
    monkeypatch.delenv("CLOUDFLARE_ACCOUNT_ID", raising=False)
    board = make_board(_cfg([{"id": "wa", "type": "worker_analytics", "worker_name": "api"}]))
    await board.start()
    await board.reload(_cfg([{"id": "wa", "type": "worker_analytics", "worker_name": "api"}], cloudflare={}))
    assert board.display.faces["wa"].line1 == "Setup"


@pytest.mark.asyncio
async def test_collect_all_fetches_once_without_timer(make_board, scheduler, client):
    board = make_board(_cfg([{"type": "status"}, {"id": "wa", "type": "worker_analytics", "worker_name": "api"}]))
    await board.collect_all()
    assert client.get_system_status.call_count == 1
    assert client.get_worker_analytics.call_count == 1
    assert board.display.faces["status"].line2 == "OK"
    assert scheduler.pending == []
