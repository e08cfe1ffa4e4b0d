"""Tests for DocumentStoreClient against a mocked HTTP transport."""

import json

import httpx
import pytest

from chainindexer.exceptions import BulkRequestError, ExternalServiceError, QueryFailuresError
from chainindexer.infra.store.client import DocumentStoreClient, parse_bulk_response, parse_query_failures


def _make_client(handler) -> DocumentStoreClient:
    return DocumentStoreClient("http://store:9200", transport=httpx.MockTransport(handler))


class TestParseBulkResponse:
    def test_no_errors(self):
        assert parse_bulk_response({"errors": False, "items": [{"index": {"status": 500}}]}) == []

    def test_failures(self):
        payload = {
            "errors": True,
            "items": [
                {"index": {"_index": "transactions", "_id": "aa", "status": 201}},
                {"delete": {"_index": "accountsdcdt", "_id": "bb", "status": 404}},
                {
                    "update": {
                        "_index": "tokens",
                        "_id": "cc",
                        "status": 400,
                        "error": {"type": "script_exception", "reason": "bad script"},
                    }
                },
            ],
        }
        [failure] = parse_bulk_response(payload)
        assert failure.index == "tokens"
        assert failure.doc_id == "cc"
        assert failure.status == 400
        assert failure.error_type == "script_exception"
        assert failure.reason == "bad script"


class TestParseQueryFailures:
    def test_no_failures(self):
        assert parse_query_failures({"deleted": 4}) == []

    def test_cause_without_details(self):
        payload = {"failures": [{"index": "events", "id": "e1", "status": 500, "cause": "boom"}]}
        [failure] = parse_query_failures(payload)
        assert failure.index == "events"
        assert failure.reason == "boom"


class TestBulk:
    async def test_sends_ndjson(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"errors": False, "items": []})

        client = _make_client(handler)
        await client.bulk('{"delete":{"_index":"a","_id":"1"}}\n')

        [request] = seen
        assert request.method == "POST"
        assert request.url.path == "/_bulk"
        assert request.headers["content-type"] == "application/x-ndjson"
        assert request.content == b'{"delete":{"_index":"a","_id":"1"}}\n'
        await client.close()

    async def test_empty_body_is_not_sent(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        await _make_client(handler).bulk("")

    async def test_item_failures_raise(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "errors": True,
                    "items": [{"index": {"_index": "logs", "_id": "aa", "status": 429, "error": "rejected"}}],
                },
            )

        with pytest.raises(BulkRequestError) as exc_info:
            await _make_client(handler).bulk("{}\n")
        assert exc_info.value.failures[0].reason == "rejected"

    async def test_http_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        with pytest.raises(ExternalServiceError):
            await _make_client(handler).bulk("{}\n")

    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ExternalServiceError):
            await _make_client(handler).bulk("{}\n")


class TestQueries:
    async def test_delete_by_ids(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"deleted": 2})

        deleted = await _make_client(handler).delete_by_ids("tokens", ["a", "b"])

        assert deleted == 2
        [request] = seen
        assert request.url.path == "/tokens/_delete_by_query"
        assert request.url.params["conflicts"] == "proceed"
        assert json.loads(request.content) == {"query": {"ids": {"values": ["a", "b"]}}}

    async def test_delete_by_ids_without_ids(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert await _make_client(handler).delete_by_ids("tokens", []) == 0

    async def test_missing_index_is_empty(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "index_not_found_exception"})

        client = _make_client(handler)
        assert await client.delete_by_query("logs", {"match_all": {}}) == 0
        assert await client.multi_get("tokens", ["a"]) == {}
        assert await client.count("accountsdcdt", {"match_all": {}}) == 0

    async def test_delete_by_query_reports_failures(self):
        def handler(request: httpx.Request) -> httpx.Response:
            failures = [
                {
                    "index": "logs",
                    "id": "aa",
                    "status": 429,
                    "cause": {"type": "es_rejected_execution_exception", "reason": "queue full"},
                }
            ]
            return httpx.Response(200, json={"deleted": 1, "version_conflicts": 0, "failures": failures})

        with pytest.raises(QueryFailuresError) as exc_info:
            await _make_client(handler).delete_by_ids("logs", ["aa", "bb"])

        [failure] = exc_info.value.failures
        assert exc_info.value.index == "logs"
        assert failure.doc_id == "aa"
        assert failure.status == 429
        assert failure.reason == "queue full"

    async def test_delete_by_query_reports_version_conflicts(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"deleted": 0, "version_conflicts": 3, "failures": []})

        with pytest.raises(QueryFailuresError) as exc_info:
            await _make_client(handler).delete_by_query("accountsdcdt", {"match_all": {}})
        assert exc_info.value.version_conflicts == 3
        assert isinstance(exc_info.value, ExternalServiceError)

    async def test_update_by_query_reports_version_conflicts(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"updated": 1, "version_conflicts": 2})

        with pytest.raises(QueryFailuresError):
            await _make_client(handler).update_by_query("accountsdcdt", {"match_all": {}}, {"source": "x"})

    async def test_update_by_query(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"updated": 3})

        script = {"source": "ctx._source.type = params.type", "lang": "painless", "params": {"type": "MetaDCDT"}}
        updated = await _make_client(handler).update_by_query("tokens", {"term": {"token": "T"}}, script)

        assert updated == 3
        assert seen == [{"query": {"term": {"token": "T"}}, "script": script}]

    async def test_multi_get(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"ids": ["a", "b"]}
            docs = [{"_id": "a", "found": True, "_source": {"type": "MetaDCDT"}}, {"_id": "b", "found": False}]
            return httpx.Response(200, json={"docs": docs})

        assert await _make_client(handler).multi_get("tokens", ["a", "b"]) == {"a": {"type": "MetaDCDT"}}

    async def test_count(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/accountsdcdt/_count"
            return httpx.Response(200, json={"count": 7})

        assert await _make_client(handler).count("accountsdcdt", {"term": {"identifier": "N-1"}}) == 7


class TestScroll:
    async def test_pages_until_empty_and_clears(self):
        pages = [
            {"_scroll_id": "s1", "hits": {"hits": [{"_id": "1"}, {"_id": "2"}]}},
            {"_scroll_id": "s2", "hits": {"hits": [{"_id": "3"}]}},
            {"_scroll_id": "s2", "hits": {"hits": []}},
        ]
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            if request.method == "DELETE":
                assert json.loads(request.content) == {"scroll_id": "s2"}
                return httpx.Response(200, json={"succeeded": True})
            return httpx.Response(200, json=pages.pop(0))

        client = _make_client(handler)
        hits = [hit["_id"] async for hit in client.scroll("accountsdcdt", {"match_all": {}}, size=2)]

        assert hits == ["1", "2", "3"]
        assert seen == [
            ("POST", "/accountsdcdt/_search"),
            ("POST", "/_search/scroll"),
            ("POST", "/_search/scroll"),
            ("DELETE", "/_search/scroll"),
        ]
