"""Log and event documents, with content-derived event ids."""

import json
import logging

from chainindexer.converters.hashing import Hasher
from chainindexer.converters.pubkey import PubkeyConverter
from chainindexer.domain.models import BlockContext, EventDocument, LogDocument, LogEventEntry
from chainindexer.domain.models.chain import Log, LogData
from chainindexer.exceptions import ConfigurationError
from chainindexer.prepared import PreparedResults

logger = logging.getLogger(__name__)


def _hex_list(values: list[bytes]) -> list[str] | None:
    return [v.hex() for v in values] or None


class LogsPreparer:
    def __init__(self, pubkey_converter: PubkeyConverter, hasher: Hasher, log: logging.Logger | None = None) -> None:
        if pubkey_converter is None or hasher is None:
            raise ConfigurationError("LogsPreparer needs a pubkey converter and a hasher")
        self._pubkey = pubkey_converter
        self._hasher = hasher
        self._log = log or logger

    def prepare(self, logs: list[LogData | None], context: BlockContext, results: PreparedResults) -> None:
        for log_data in logs:
            if log_data is None:
                continue
            log_doc, events = self.prepare_log(log_data.tx_hash, log_data.log, context, results)
            results.logs.append(log_doc)
            results.events.extend(events)

    def prepare_log(
        self,
        tx_hash: str,
        log: Log,
        context: BlockContext,
        results: PreparedResults,
    ) -> tuple[LogDocument, list[EventDocument]]:
        scr = results.scr(tx_hash)
        log_doc = LogDocument(
            id=tx_hash,
            address=self._pubkey.silent_encode(log.address, self._log),
            original_tx_hash=(scr.original_tx_hash or None) if scr is not None else None,
            timestamp=context.timestamp,
        )

        events: list[EventDocument] = []
        for order, event in enumerate(log.events):
            if event is None:
                continue
            entry = LogEventEntry(
                address=self._pubkey.silent_encode(event.address, self._log),
                identifier=event.identifier,
                topics=event.topics,
                data=event.data or None,
                additional_data=event.additional_data or None,
                order=order,
            )
            log_doc.events.append(entry)

            event_doc = EventDocument(
                tx_hash=tx_hash,
                log_address=log_doc.address,
                address=entry.address,
                identifier=entry.identifier,
                data=event.data.hex(),
                additional_data=_hex_list(event.additional_data),
                topics=_hex_list(event.topics),
                order=order,
                shard_id=context.shard_id,
                original_tx_hash=log_doc.original_tx_hash,
                timestamp=context.timestamp,
            )
            event_doc.id = self.compute_event_id(event_doc)
            events.append(event_doc)

        return log_doc, events

    def compute_event_id(self, event: EventDocument) -> str:
        """Hash of the event's chain content only: identical on every shard and every replay."""
        canonical = json.dumps(
            {
                "txHash": event.tx_hash,
                "logAddress": event.log_address,
                "address": event.address,
                "identifier": event.identifier,
                "data": event.data,
                "additionalData": event.additional_data,
                "topics": event.topics,
                "order": event.order,
            },
            separators=(",", ":"),
        )
        return self._hasher.compute(canonical).hex()
