"""HTTP client for the document store's bulk, query and multi-get APIs.

Errors are surfaced, never retried here: the caller owns the retry policy.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from chainindexer.exceptions import BulkRequestError, ExternalServiceError, ItemFailure, QueryFailuresError

logger = logging.getLogger(__name__)

NDJSON = "application/x-ndjson"
DEFAULT_SCROLL_SIZE = 1000
SCROLL_KEEP_ALIVE = "10m"


def parse_bulk_response(payload: dict) -> list[ItemFailure]:
    """Item-level failures of a bulk response. A delete of a missing document is not a failure."""
    if not payload.get("errors"):
        return []

    failures: list[ItemFailure] = []
    for item in payload.get("items", []):
        for action, result in item.items():
            status = result.get("status", 0)
            if status < 300:
                continue
            if action == "delete" and status == 404:
                continue
            error = result.get("error") or {}
            failures.append(
                ItemFailure(
                    index=result.get("_index", ""),
                    doc_id=result.get("_id", ""),
                    status=status,
                    error_type=error.get("type", "") if isinstance(error, dict) else "",
                    reason=error.get("reason", "") if isinstance(error, dict) else str(error),
                )
            )
    return failures


def parse_query_failures(payload: dict) -> list[ItemFailure]:
    """Per-document failures reported by a delete- or update-by-query response."""
    failures: list[ItemFailure] = []
    for failure in payload.get("failures", []):
        cause = failure.get("cause") or {}
        failures.append(
            ItemFailure(
                index=failure.get("index", ""),
                doc_id=failure.get("id", ""),
                status=failure.get("status", 0),
                error_type=cause.get("type", "") if isinstance(cause, dict) else "",
                reason=cause.get("reason", "") if isinstance(cause, dict) else str(cause),
            )
        )
    return failures


class DocumentStoreClient:
    def __init__(
        self,
        base_url: str,
        auth: tuple[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, auth=auth, timeout=timeout, transport=transport)
        self._log = log or logger

    async def _request(self, method: str, url: str, allow_missing: bool = False, **kwargs: Any) -> dict | None:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"{method} {url} failed: {exc}") from exc

        if resp.status_code == 404 and allow_missing:
            return None
        if resp.status_code >= 400:
            raise ExternalServiceError(f"{method} {url} returned {resp.status_code}: {resp.text[:500]}")
        return resp.json()

    async def bulk(self, body: str) -> None:
        """Send one NDJSON bulk body; raise BulkRequestError listing every rejected item."""
        if not body:
            return
        payload = await self._request("POST", "/_bulk", content=body.encode(), headers={"Content-Type": NDJSON})
        failures = parse_bulk_response(payload or {})
        if failures:
            for failure in failures:
                self._log.error(
                    "bulk item failed index=%s id=%s status=%d type=%s reason=%s",
                    failure.index, failure.doc_id, failure.status, failure.error_type, failure.reason,
                )
            raise BulkRequestError(failures)

    async def delete_by_query(self, index: str, query: dict) -> int:
        payload = await self._request(
            "POST",
            f"/{index}/_delete_by_query",
            allow_missing=True,
            params={"conflicts": "proceed"},
            json={"query": query},
        )
        payload = payload or {}
        self._check_query_result(index, payload)
        deleted = payload.get("deleted", 0)
        self._log.debug("deleted %d docs from %s", deleted, index)
        return deleted

    async def delete_by_ids(self, index: str, ids: list[str]) -> int:
        if not ids:
            return 0
        return await self.delete_by_query(index, {"ids": {"values": ids}})

    async def update_by_query(self, index: str, query: dict, script: dict) -> int:
        payload = await self._request(
            "POST",
            f"/{index}/_update_by_query",
            allow_missing=True,
            params={"conflicts": "proceed"},
            json={"query": query, "script": script},
        )
        payload = payload or {}
        self._check_query_result(index, payload)
        return payload.get("updated", 0)

    def _check_query_result(self, index: str, payload: dict) -> None:
        """Raise when a by-query request skipped documents on conflicts or failed on some of them."""
        failures = parse_query_failures(payload)
        conflicts = payload.get("version_conflicts", 0)
        if not failures and not conflicts:
            return
        self._log.error(
            "query on %s left documents untouched: %d failures, %d conflicts", index, len(failures), conflicts
        )
        raise QueryFailuresError(index, failures, conflicts)

    async def multi_get(self, index: str, ids: list[str]) -> dict[str, dict]:
        """Sources of the found documents, keyed by id."""
        if not ids:
            return {}
        payload = await self._request("POST", f"/{index}/_mget", allow_missing=True, json={"ids": ids})
        found: dict[str, dict] = {}
        for doc in (payload or {}).get("docs", []):
            if doc.get("found"):
                found[doc["_id"]] = doc.get("_source", {})
        return found

    async def count(self, index: str, query: dict) -> int:
        payload = await self._request("POST", f"/{index}/_count", allow_missing=True, json={"query": query})
        return (payload or {}).get("count", 0)

    async def scroll(
        self, index: str, query: dict, size: int = DEFAULT_SCROLL_SIZE
    ) -> AsyncIterator[dict]:
        """Yield every hit matching ``query``; the scroll context is cleared afterwards."""
        payload = await self._request(
            "POST",
            f"/{index}/_search",
            params={"scroll": SCROLL_KEEP_ALIVE},
            json={"query": query, "size": size},
        )
        scroll_id = payload.get("_scroll_id")
        try:
            while True:
                hits = payload.get("hits", {}).get("hits", [])
                if not hits:
                    break
                for hit in hits:
                    yield hit
                payload = await self._request(
                    "POST", "/_search/scroll", json={"scroll": SCROLL_KEEP_ALIVE, "scroll_id": scroll_id}
                )
                scroll_id = payload.get("_scroll_id", scroll_id)
        finally:
            if scroll_id:
                await self._request("DELETE", "/_search/scroll", allow_missing=True, json={"scroll_id": scroll_id})

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DocumentStoreClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
