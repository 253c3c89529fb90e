"""
Module 04 - Data Source Tests
Tests for core/sources and core/http

Covers:
1. Activity row validation from raw payloads
2. PostgREST RPC request shape and error mapping
3. Static file-backed sources used by the CLI
4. HttpClient error wrapping and one shared session across threads
"""
import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
import requests

from core.http import HttpClient, HttpError, HttpResponse
from core.schemas.errors import UpstreamException
from core.sources import (
    ActivitySource,
    FeeReductionSource,
    PostgrestActivitySource,
    PostgrestFeeReductionSource,
    PostgrestRpcClient,
    StaticActivitySource,
    StaticFeeReductionSource,
    parse_activity_rows,
)


START = datetime(2026, 3, 1, tzinfo=timezone.utc)
END = datetime(2026, 3, 8, tzinfo=timezone.utc)


class _FakeHttp:
    """Records POSTs and replays canned responses."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.posts = []

    def post(self, url, *, headers=None, json=None, timeout=None):
        self.posts.append((url, json))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        pass


def _json_response(status: int, body) -> HttpResponse:
    content = b"" if body is None else json.dumps(body).encode()
    return HttpResponse(status_code=status, content=content, url="https://db.example/rest/v1/rpc/fn")


def _rpc(responses) -> tuple[PostgrestRpcClient, _FakeHttp]:
    http = _FakeHttp(responses)
    return PostgrestRpcClient("https://db.example/", "service-key", http_client=http), http


class TestParseActivityRows:
    """Tests for parse_activity_rows."""

    def test_valid_rows(self):
        rows = parse_activity_rows(
            [{"user_id": "u1", "wallet_address": "w1", "eggs_produced": 10, "eggs_market": 5, "extra": 1}],
            source="test",
        )
        assert rows[0].user_id == "u1"
        assert rows[0].eggs_market == 5

    def test_none_is_empty(self):
        assert parse_activity_rows(None, source="test") == []

    def test_non_list_rejected(self):
        with pytest.raises(UpstreamException):
            parse_activity_rows("oops", source="test")
        with pytest.raises(UpstreamException):
            parse_activity_rows(42, source="test")

    def test_invalid_row_reports_position(self):
        with pytest.raises(UpstreamException) as exc_info:
            parse_activity_rows(
                [
                    {"user_id": "u1", "wallet_address": "w1"},
                    {"user_id": "u2", "wallet_address": "w2", "eggs_produced": -3},
                ],
                source="fn_epoch_eggs",
            )
        details = exc_info.value.details
        assert details["position"] == 1
        assert details["source"] == "fn_epoch_eggs"
        json.dumps(details)

    def test_blank_wallet_rejected(self):
        with pytest.raises(UpstreamException):
            parse_activity_rows([{"user_id": "u1", "wallet_address": "  "}], source="test")


class TestPostgrestSources:
    """Tests for the PostgREST RPC sources."""

    def test_rpc_url(self):
        rpc, _ = _rpc([])
        assert rpc.rpc_url("fn_epoch_eggs") == "https://db.example/rest/v1/rpc/fn_epoch_eggs"

    def test_missing_credentials(self):
        with pytest.raises(ValueError):
            PostgrestRpcClient("", "key")
        with pytest.raises(ValueError):
            PostgrestRpcClient("https://db.example", "")

    def test_default_headers(self):
        rpc = PostgrestRpcClient("https://db.example", "service-key")
        assert rpc.http.default_headers["apikey"] == "service-key"
        assert rpc.http.default_headers["Authorization"] == "Bearer service-key"

    def test_activity_fetch(self):
        rpc, http = _rpc([_json_response(200, [
            {"user_id": "u1", "wallet_address": "w1", "eggs_produced": 10, "eggs_market": 10},
        ])])
        rows = PostgrestActivitySource(rpc).fetch(START, END, "ton")

        url, params = http.posts[0]
        assert url.endswith("/rest/v1/rpc/fn_epoch_eggs")
        assert params == {
            "_epoch_start": START.isoformat(),
            "_epoch_end": END.isoformat(),
            "_chain": "ton",
        }
        assert [r.user_id for r in rows] == ["u1"]

    def test_activity_empty_body(self):
        rpc, _ = _rpc([_json_response(200, None)])
        assert PostgrestActivitySource(rpc).fetch(START, END, "sol") == []

    def test_activity_http_error(self):
        rpc, _ = _rpc([_json_response(500, {"message": "boom"})])
        with pytest.raises(UpstreamException) as exc_info:
            PostgrestActivitySource(rpc).fetch(START, END, "ton")
        assert exc_info.value.details["source"] == "fn_epoch_eggs"

    def test_activity_transport_error(self):
        rpc, _ = _rpc([HttpError("connection refused")])
        with pytest.raises(UpstreamException):
            PostgrestActivitySource(rpc).fetch(START, END, "ton")

    def test_activity_bad_json(self):
        rpc, _ = _rpc([HttpResponse(status_code=200, content=b"<html>")])
        with pytest.raises(UpstreamException):
            PostgrestActivitySource(rpc).fetch(START, END, "ton")

    def test_fee_reduction(self):
        rpc, http = _rpc([_json_response(200, 0.05)])
        assert PostgrestFeeReductionSource(rpc).get_fee_reduction("u1") == 0.05
        assert http.posts[0] == (
            "https://db.example/rest/v1/rpc/get_user_fee_reduction",
            {"p_user_id": "u1"},
        )

    def test_fee_reduction_errors_propagate(self):
        rpc, _ = _rpc([_json_response(503, {"message": "down"})])
        with pytest.raises(HttpError):
            PostgrestFeeReductionSource(rpc).get_fee_reduction("u1")

    def test_protocols(self):
        rpc, _ = _rpc([])
        assert isinstance(PostgrestActivitySource(rpc), ActivitySource)
        assert isinstance(PostgrestFeeReductionSource(rpc), FeeReductionSource)


class TestStaticSources:
    """Tests for the file-backed sources."""

    def test_activity_from_list_file(self, tmp_path):
        path = tmp_path / "activity.json"
        path.write_text(json.dumps([{"user_id": "u1", "wallet_address": "w1", "eggs_produced": 1}]))
        source = StaticActivitySource.from_file(path)
        assert [r.wallet_address for r in source.fetch(START, END, "ton")] == ["w1"]
        assert source.calls == [(START, END, "ton")]

    def test_activity_from_rows_object(self, tmp_path):
        path = tmp_path / "activity.json"
        path.write_text(json.dumps({"rows": [{"user_id": "u1", "wallet_address": "w1"}]}))
        assert len(StaticActivitySource.from_file(path).rows) == 1

    def test_invalid_fixture_fails_early(self):
        with pytest.raises(UpstreamException):
            StaticActivitySource([{"user_id": "u1"}])

    def test_fee_reductions_from_file(self, tmp_path):
        path = tmp_path / "fees.json"
        path.write_text(json.dumps({"u1": 0.1}))
        source = StaticFeeReductionSource.from_file(path)
        assert source.get_fee_reduction("u1") == 0.1
        assert source.get_fee_reduction("u2") == 0.0


class TestHttpClient:
    """Tests for HttpClient wrapping requests."""

    def test_request_exception_wrapped(self, monkeypatch):
        def boom(self, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(requests.Session, "request", boom)
        with HttpClient() as client:
            with pytest.raises(HttpError, match="refused"):
                client.post("https://db.example/rest/v1/rpc/fn", json={})

    def test_response_mapped(self, monkeypatch):
        captured = {}

        class _Raw:
            status_code = 200
            content = b'{"ok": true}'
            headers = {"Content-Type": "application/json"}
            url = "https://db.example/x"
            elapsed = timedelta(milliseconds=12)

        def fake_request(self, **kwargs):
            captured.update(kwargs)
            return _Raw()

        monkeypatch.setattr(requests.Session, "request", fake_request)
        client = HttpClient(timeout=5.0, default_headers={"apikey": "k"})
        response = client.get("https://db.example/x", headers={"X-Test": "1"})

        assert response.ok
        assert response.json() == {"ok": True}
        assert response.elapsed_ms == pytest.approx(12.0)
        assert captured["timeout"] == 5.0
        assert captured["headers"] == {"apikey": "k", "X-Test": "1"}
        client.close()

    def test_session_created_once_across_threads(self, monkeypatch):
        created = []
        real_session = requests.Session

        class _SlowSession(real_session):
            def __init__(self):
                time.sleep(0.01)
                super().__init__()
                created.append(self)

        monkeypatch.setattr(requests, "Session", _SlowSession)
        client = HttpClient(default_headers={"apikey": "k"})
        barrier = threading.Barrier(8)

        def grab():
            barrier.wait()
            return client._get_session()

        with ThreadPoolExecutor(max_workers=8) as pool:
            sessions = list(pool.map(lambda _: grab(), range(8)))

        assert len(created) == 1
        assert all(s is created[0] for s in sessions)
        assert created[0].headers["apikey"] == "k"
        client.close()

    def test_raise_for_status(self):
        response = HttpResponse(status_code=404, content=b"missing", url="https://db.example/x")
        with pytest.raises(HttpError) as exc_info:
            response.raise_for_status()
        assert exc_info.value.status_code == 404
