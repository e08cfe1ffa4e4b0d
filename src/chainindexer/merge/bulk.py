"""Bulk request assembly: action/document line pairs split into size-bounded bodies."""

import json
from typing import Any

from chainindexer.merge.scripts import Script

DEFAULT_MAX_BULK_SIZE = 9 * 1024 * 1024


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def index_action(index: str, doc_id: str) -> dict:
    return {"index": {"_index": index, "_id": doc_id}}


def update_action(index: str, doc_id: str) -> dict:
    return {"update": {"_index": index, "_id": doc_id}}


def delete_action(index: str, doc_id: str) -> dict:
    return {"delete": {"_index": index, "_id": doc_id}}


def update_body(script: Script, upsert: dict | None = None, scripted_upsert: bool = False) -> dict:
    body: dict[str, Any] = {}
    if scripted_upsert:
        body["scripted_upsert"] = True
    body["script"] = script.to_body()
    body["upsert"] = upsert if upsert is not None else {}
    return body


class BulkBuffer:
    """Accumulates bulk lines; starts a new body once ``max_size`` bytes would be exceeded.

    An action and its document always land in the same body.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_BULK_SIZE) -> None:
        self._max_size = max_size
        self._bodies: list[list[str]] = [[]]
        self._sizes: list[int] = [0]
        self._actions = 0

    def put(self, action: dict, document: dict | None = None) -> None:
        chunk = _dumps(action) + "\n"
        if document is not None:
            chunk += _dumps(document) + "\n"
        size = len(chunk.encode())

        if self._sizes[-1] and self._sizes[-1] + size > self._max_size:
            self._bodies.append([])
            self._sizes.append(0)
        self._bodies[-1].append(chunk)
        self._sizes[-1] += size
        self._actions += 1

    def index(self, index: str, doc_id: str, document: dict) -> None:
        self.put(index_action(index, doc_id), document)

    def update(
        self,
        index: str,
        doc_id: str,
        script: Script,
        upsert: dict | None = None,
        scripted_upsert: bool = False,
    ) -> None:
        self.put(update_action(index, doc_id), update_body(script, upsert, scripted_upsert))

    def delete(self, index: str, doc_id: str) -> None:
        self.put(delete_action(index, doc_id))

    def bodies(self) -> list[str]:
        return ["".join(lines) for lines in self._bodies if lines]

    def __len__(self) -> int:
        return self._actions
